"""
Market Data Types

Core market data types used throughout the candle pipeline.
Trades flow in from the ingestion layer, candles flow out to the sinks.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
import json


RFC3339 = "%Y-%m-%dT%H:%M:%SZ"


class Resolution(Enum):
    """Candle window width in minutes"""
    R5 = 5
    R30 = 30
    R240 = 240

    @property
    def minutes(self) -> int:
        return self.value

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.value)

    @property
    def label(self) -> str:
        """Short label used in topics and logs ('5m', '30m', '240m')"""
        return f"{self.value}m"


def format_timestamp(ts: datetime) -> str:
    """Render an instant as an RFC 3339 UTC string (2019-01-30T07:00:00Z)"""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime(RFC3339)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 / ISO 8601 string into a tz-aware UTC datetime"""
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_price(price: float) -> str:
    """
    Shortest decimal form of a price, without exponent or trailing '.0'.

    10.0 -> '10', 10.25 -> '10.25', 1e-05 -> '0.00001'
    """
    text = repr(float(price))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


@dataclass(frozen=True)
class Trade:
    """A single trade print"""
    ticker: str
    price: float
    timestamp: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "ticker": self.ticker,
            "price": self.price,
            "timestamp": format_timestamp(self.timestamp),
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "Trade":
        """Create Trade from dictionary"""
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = parse_timestamp(timestamp)
        return cls(
            ticker=data["ticker"],
            price=float(data["price"]),
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class Candle:
    """OHLC candle for one ticker over one window of one resolution"""
    ticker: str
    open: float
    high: float
    low: float
    close: float
    window_start: datetime
    resolution: Resolution

    def to_row(self) -> list[str]:
        """Ordered CSV fields: ticker, window_start, open, high, low, close"""
        return [
            self.ticker,
            format_timestamp(self.window_start),
            format_price(self.open),
            format_price(self.high),
            format_price(self.low),
            format_price(self.close),
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "ticker": self.ticker,
            "window_start": format_timestamp(self.window_start),
            "resolution": self.resolution.label,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "Candle":
        """Create Candle from dictionary"""
        window_start = data["window_start"]
        if isinstance(window_start, str):
            window_start = parse_timestamp(window_start)
        resolution = data["resolution"]
        if isinstance(resolution, str):
            resolution = Resolution(int(resolution.rstrip("m")))
        elif isinstance(resolution, int):
            resolution = Resolution(resolution)
        return cls(
            ticker=data["ticker"],
            open=data["open"],
            high=data["high"],
            low=data["low"],
            close=data["close"],
            window_start=window_start,
            resolution=resolution,
        )

    @classmethod
    def from_json(cls, json_str: str) -> "Candle":
        """Deserialize from JSON string"""
        return cls.from_dict(json.loads(json_str))
