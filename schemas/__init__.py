"""
Candle Pipeline - Typed Message Catalog

Trades and candles flowing through the pipeline use strongly-typed message schemas.
"""

from schemas.market_data import Candle, Resolution, Trade

__all__ = [
    "Trade",
    "Candle",
    "Resolution",
]
