"""
Candle Sinks

Destination stage of the pipeline. Every closed candle is routed to a
resolution-specific destination:

- CsvCandleSink   -> one append-only CSV file per resolution
- NatsCandleSink  -> candles.{ticker}.{resolution} on NATS

A sink that fails raises SinkError, which aborts the run.
"""

import csv
import logging
from pathlib import Path
from typing import Any, Dict, IO, Iterable, Optional, Protocol

from dataflow.adapters.nats_client import NatsClient, Topics
from dataflow.errors import SinkError
from schemas.market_data import Candle, Resolution

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_TEMPLATE = "candles_{minutes}min.csv"


class CandleSink(Protocol):
    """Protocol for candle destinations driven by the writer stage"""

    async def start(self) -> None:
        ...

    async def write(self, candle: Candle) -> None:
        ...

    async def stop(self) -> None:
        ...


class CsvCandleSink:
    """
    Writes candles to one CSV file per resolution.

    Files are opened in append mode, so output of earlier runs is kept.
    Each row is flushed as soon as it is written.

    Row layout:
        ticker, window_start, open, high, low, close
    """

    def __init__(
        self,
        directory: Path,
        resolutions: Iterable[Resolution],
        filename_template: str = DEFAULT_FILENAME_TEMPLATE,
    ):
        self.directory = Path(directory)
        self.resolutions = list(resolutions)
        self.filename_template = filename_template

        self._files: Dict[Resolution, IO[str]] = {}
        self._writers: Dict[Resolution, Any] = {}
        self._candles_written = 0

    def path_for(self, resolution: Resolution) -> Path:
        """File path for a resolution"""
        name = self.filename_template.format(
            minutes=resolution.minutes, label=resolution.label
        )
        return self.directory / name

    @property
    def candles_written(self) -> int:
        return self._candles_written

    async def start(self) -> None:
        """Open one file per resolution"""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for resolution in self.resolutions:
                path = self.path_for(resolution)
                f = open(path, "a", encoding="utf-8", newline="")
                self._files[resolution] = f
                self._writers[resolution] = csv.writer(f, lineterminator="\n")
                logger.info(f"Writing {resolution.label} candles to {path}")
        except OSError as e:
            self._close_files()
            raise SinkError(f"can't open candle file: {e}") from e

    async def write(self, candle: Candle) -> None:
        """Append one candle to its resolution's file"""
        writer = self._writers.get(candle.resolution)
        if writer is None:
            raise SinkError(f"no destination for resolution {candle.resolution.label}")

        row = candle.to_row()
        try:
            writer.writerow(row)
            self._files[candle.resolution].flush()
        except (OSError, csv.Error) as e:
            raise SinkError(f"trouble with writing candle to file: {e}") from e

        self._candles_written += 1
        logger.debug(f"{candle.resolution.label} {row}")

    async def stop(self) -> None:
        """Close all files"""
        self._close_files()
        logger.info(f"CSV sink stopped. Total written: {self._candles_written} candles")

    def _close_files(self) -> None:
        for f in self._files.values():
            f.close()
        self._files.clear()
        self._writers.clear()


class NatsCandleSink:
    """Publishes candles as JSON to NATS"""

    def __init__(self, nats_client: NatsClient):
        self.nats = nats_client
        self._candles_written = 0

    @property
    def candles_written(self) -> int:
        return self._candles_written

    async def start(self) -> None:
        """Connect to NATS"""
        try:
            await self.nats.connect()
        except Exception as e:
            raise SinkError(f"can't connect to NATS: {e}") from e

    async def write(self, candle: Candle) -> None:
        """Publish one candle"""
        topic = Topics.candles(candle.ticker, candle.resolution.label)
        try:
            await self.nats.publish_json(topic, candle.to_json())
        except Exception as e:
            raise SinkError(f"failed to publish candle to {topic}: {e}") from e

        self._candles_written += 1
        logger.debug(
            f"Published candle: {candle.ticker} {candle.resolution.label} "
            f"O={candle.open} H={candle.high} L={candle.low} C={candle.close}"
        )

    async def stop(self) -> None:
        """Drain and close the NATS connection"""
        await self.nats.close()
        logger.info(f"NATS sink stopped. Total published: {self._candles_written} candles")


def create_sink(
    kind: str,
    resolutions: Iterable[Resolution],
    directory: Path = Path("."),
    filename_template: str = DEFAULT_FILENAME_TEMPLATE,
    nats_client: Optional[NatsClient] = None,
) -> CandleSink:
    """
    Build a sink by name.

    Args:
        kind: "csv" or "nats"
        resolutions: Resolutions the sink must accept
        directory: Output directory for the CSV sink
        filename_template: CSV file name, formatted with minutes and label
        nats_client: Client for the NATS sink (a default one is created if omitted)

    Raises:
        ValueError: If kind is unknown
    """
    if kind == "csv":
        return CsvCandleSink(directory, resolutions, filename_template)
    if kind == "nats":
        return NatsCandleSink(nats_client or NatsClient())
    raise ValueError(f"Unknown sink type: {kind}. Available types: csv, nats")
