"""Pytest configuration and fixtures for candle pipeline tests."""
from datetime import datetime, timezone
from pathlib import Path

import pytest

from schemas.market_data import Trade


def at(stamp: str) -> datetime:
    """UTC instant from 'YYYY-MM-DD HH:MM:SS'."""
    return datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc)


def make_trade(ticker: str, price: float, stamp: str) -> Trade:
    return Trade(ticker=ticker, price=price, timestamp=at(stamp))


@pytest.fixture
def epoch() -> datetime:
    """Default seed window start, 2019-01-30 07:00 UTC."""
    return at("2019-01-30 07:00:00")


@pytest.fixture
def trades_file(tmp_path: Path):
    """Write trade lines to a file and return its path."""
    def _write(lines, name="trades.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write
