"""
Runtime Module

Aggregation orchestration and the process entry point.
"""

from .orchestrator import AggregationOrchestrator, FlushCoordinator

__all__ = [
    "AggregationOrchestrator",
    "FlushCoordinator",
]
