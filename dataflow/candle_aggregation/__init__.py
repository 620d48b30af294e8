"""
Candle Aggregation

Per-resolution OHLC aggregation of trades, gated by the trading session.
"""

from .aggregator import CandleBuilder, ResolutionAggregator
from .session import DEFAULT_SESSION, SessionWindow, in_session

__all__ = [
    "CandleBuilder",
    "ResolutionAggregator",
    "SessionWindow",
    "DEFAULT_SESSION",
    "in_session",
]
