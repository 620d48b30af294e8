"""
Trade Record Parser

Turns one raw trade line into a Trade.

Line format (comma separated):
    ticker,price,amount,YYYY-MM-DD HH:MM:SS

The timestamp is taken as UTC. The amount field is not read.
"""

import math
from datetime import datetime, timezone

from dataflow.errors import TradeParseError
from schemas.market_data import Trade

TICKER = 0
PRICE = 1
TIMESTAMP = 3
MIN_FIELDS = TIMESTAMP + 1

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_trade(line: str, line_number: int = 0) -> Trade:
    """
    Parse a trade line.

    Args:
        line: Raw record without trailing newline
        line_number: 1-based position in the source, used in error messages

    Returns:
        Trade with a tz-aware UTC timestamp

    Raises:
        TradeParseError: If the record is short, the ticker is empty, or the
            price or timestamp cannot be converted
    """
    fields = [f.strip() for f in line.split(",")]
    if len(fields) < MIN_FIELDS:
        raise TradeParseError(
            f"expected at least {MIN_FIELDS} fields, got {len(fields)}",
            line_number, line,
        )

    ticker = fields[TICKER]
    if not ticker:
        raise TradeParseError("empty ticker", line_number, line)

    try:
        price = float(fields[PRICE])
    except ValueError as e:
        raise TradeParseError(
            f"can't convert price {fields[PRICE]!r} into float: {e}",
            line_number, line,
        ) from e
    if not math.isfinite(price):
        raise TradeParseError(f"price is not finite: {fields[PRICE]!r}", line_number, line)

    try:
        timestamp = datetime.strptime(fields[TIMESTAMP], TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TradeParseError(
            f"can't convert time {fields[TIMESTAMP]!r}: {e}",
            line_number, line,
        ) from e

    return Trade(
        ticker=ticker,
        price=price,
        timestamp=timestamp.replace(tzinfo=timezone.utc),
    )
