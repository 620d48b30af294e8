"""
Candle Output

Sinks that receive closed candles from the pipeline.
"""

from .sink import CandleSink, CsvCandleSink, NatsCandleSink, create_sink

__all__ = ["CandleSink", "CsvCandleSink", "NatsCandleSink", "create_sink"]
