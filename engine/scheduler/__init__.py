"""
Scheduler Module

Concurrent stage execution of the candle pipeline.
"""

from .pipeline import PipelineExecutor

__all__ = [
    "PipelineExecutor",
]
