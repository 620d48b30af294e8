"""
Adapters

Stage handoff channel and NATS client wrapper.
"""

from dataflow.adapters.handoff import Handoff
from dataflow.adapters.nats_client import NatsClient, NatsConfig, Topics

__all__ = ["Handoff", "NatsClient", "NatsConfig", "Topics"]
