"""Unit tests for the CSV and NATS candle sinks."""
import json
from unittest.mock import AsyncMock

import pytest

from dataflow.errors import SinkError
from dataflow.persistence.sink import CsvCandleSink, NatsCandleSink, create_sink
from schemas.market_data import Candle, Resolution

from conftest import at

ALL = [Resolution.R5, Resolution.R30, Resolution.R240]


def candle(resolution=Resolution.R5, ticker="X", price=10.0, stamp="2019-01-30 07:00:00"):
    return Candle(
        ticker=ticker, open=price, high=price + 1, low=price - 1, close=price,
        window_start=at(stamp), resolution=resolution,
    )


# ==================== CSV ====================

@pytest.mark.asyncio
async def test_csv_routes_candles_by_resolution(tmp_path):
    sink = CsvCandleSink(tmp_path, ALL)
    await sink.start()
    await sink.write(candle(Resolution.R5))
    await sink.write(candle(Resolution.R30, ticker="Y", price=2.5))
    await sink.stop()

    assert (tmp_path / "candles_5min.csv").read_text() == (
        "X,2019-01-30T07:00:00Z,10,11,9,10\n"
    )
    assert (tmp_path / "candles_30min.csv").read_text() == (
        "Y,2019-01-30T07:00:00Z,2.5,3.5,1.5,2.5\n"
    )
    assert (tmp_path / "candles_240min.csv").read_text() == ""
    assert sink.candles_written == 2


@pytest.mark.asyncio
async def test_csv_appends_to_existing_files(tmp_path):
    (tmp_path / "candles_5min.csv").write_text("OLD,row\n")

    sink = CsvCandleSink(tmp_path, [Resolution.R5])
    await sink.start()
    await sink.write(candle())
    await sink.stop()

    lines = (tmp_path / "candles_5min.csv").read_text().splitlines()
    assert lines == ["OLD,row", "X,2019-01-30T07:00:00Z,10,11,9,10"]


@pytest.mark.asyncio
async def test_csv_custom_filename_template(tmp_path):
    sink = CsvCandleSink(tmp_path / "out", [Resolution.R30], "ohlc_{label}.csv")
    await sink.start()
    await sink.write(candle(Resolution.R30))
    await sink.stop()

    assert (tmp_path / "out" / "ohlc_30m.csv").exists()


@pytest.mark.asyncio
async def test_csv_rejects_unconfigured_resolution(tmp_path):
    sink = CsvCandleSink(tmp_path, [Resolution.R5])
    await sink.start()
    with pytest.raises(SinkError):
        await sink.write(candle(Resolution.R240))
    await sink.stop()


@pytest.mark.asyncio
async def test_csv_start_fails_on_unwritable_directory(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")

    sink = CsvCandleSink(blocker / "sub", ALL)
    with pytest.raises(SinkError):
        await sink.start()


# ==================== NATS ====================

@pytest.mark.asyncio
async def test_nats_publishes_candle_json():
    client = AsyncMock()
    sink = NatsCandleSink(client)

    await sink.start()
    await sink.write(candle(Resolution.R240, ticker="BTC/USD"))
    await sink.stop()

    client.connect.assert_awaited_once()
    client.close.assert_awaited_once()
    topic, payload = client.publish_json.await_args.args
    assert topic == "candles.BTC_USD.240m"
    assert json.loads(payload) == {
        "ticker": "BTC/USD",
        "window_start": "2019-01-30T07:00:00Z",
        "resolution": "240m",
        "open": 10.0,
        "high": 11.0,
        "low": 9.0,
        "close": 10.0,
    }
    assert sink.candles_written == 1


@pytest.mark.asyncio
async def test_nats_publish_failure_is_sink_error():
    client = AsyncMock()
    client.publish_json.side_effect = RuntimeError("NATS client not connected")
    sink = NatsCandleSink(client)

    with pytest.raises(SinkError):
        await sink.write(candle())


@pytest.mark.asyncio
async def test_nats_connect_failure_is_sink_error():
    client = AsyncMock()
    client.connect.side_effect = OSError("connection refused")

    with pytest.raises(SinkError):
        await NatsCandleSink(client).start()


# ==================== Factory ====================

def test_create_sink(tmp_path):
    assert isinstance(create_sink("csv", ALL, directory=tmp_path), CsvCandleSink)
    assert isinstance(create_sink("nats", ALL, nats_client=AsyncMock()), NatsCandleSink)
    with pytest.raises(ValueError):
        create_sink("postgres", ALL)
