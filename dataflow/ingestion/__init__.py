"""
Ingestion

Reads raw trade records and converts them into Trade messages.
"""

from .parser import parse_trade
from .reader import read_trade_lines

__all__ = ["parse_trade", "read_trade_lines"]
