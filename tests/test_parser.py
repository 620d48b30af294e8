"""Unit tests for trade record parsing."""
from datetime import datetime, timezone

import pytest

from dataflow.errors import PipelineError, TradeParseError
from dataflow.ingestion.parser import parse_trade


def test_parse_valid_record():
    trade = parse_trade("AAPL,100.25,4,2019-01-30 07:00:01")

    assert trade.ticker == "AAPL"
    assert trade.price == 100.25
    assert trade.timestamp == datetime(2019, 1, 30, 7, 0, 1, tzinfo=timezone.utc)


def test_amount_field_is_not_read():
    trade = parse_trade("AAPL,100,not-a-number,2019-01-30 07:00:01")
    assert trade.price == 100


def test_surrounding_whitespace_is_ignored():
    trade = parse_trade(" AAPL , 100 ,1, 2019-01-30 07:00:01 ")
    assert trade.ticker == "AAPL"


@pytest.mark.parametrize(
    "line",
    [
        "AAPL,100,1",
        ",100,1,2019-01-30 07:00:01",
        "AAPL,abc,1,2019-01-30 07:00:01",
        "AAPL,nan,1,2019-01-30 07:00:01",
        "AAPL,inf,1,2019-01-30 07:00:01",
        "AAPL,100,1,2019-01-30T07:00:01",
        "AAPL,100,1,2019-13-30 07:00:01",
    ],
)
def test_malformed_records_raise(line):
    with pytest.raises(TradeParseError):
        parse_trade(line)


def test_parse_error_carries_line_number():
    with pytest.raises(TradeParseError) as exc_info:
        parse_trade("AAPL,abc,1,2019-01-30 07:00:01", line_number=7)

    err = exc_info.value
    assert err.line_number == 7
    assert "line 7" in str(err)
    assert isinstance(err, PipelineError)
    assert isinstance(err, ValueError)
