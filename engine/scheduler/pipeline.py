"""
Pipeline Executor

Runs one pass over a trade file as three concurrent stages:

    reader  --lines-->  processor  --candles-->  writer

Stages are joined by unbuffered handoffs and run under a single deadline.
The processor owns the orchestrator; nothing else touches aggregator state.
"""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dataflow.adapters.handoff import Handoff
from dataflow.errors import DeadlineExceeded, PipelineError
from dataflow.ingestion.parser import parse_trade
from dataflow.ingestion.reader import Line, read_trade_lines
from dataflow.persistence.sink import CandleSink
from schemas.market_data import Candle

from ..config.loader import RunConfig
from ..runtime.orchestrator import AggregationOrchestrator

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """
    Executes the candle pipeline for a single trade file.

    The executor:
    1. Starts the sink
    2. Runs reader, processor and writer in one TaskGroup
    3. Flushes every aggregator once the input is exhausted
    4. Stops the sink, whatever the outcome

    The first failing stage cancels the others, and exactly one error is
    raised to the caller. When the deadline expires, open candles are
    discarded and DeadlineExceeded is raised.

    Example usage:
        config = ConfigLoader(Path("config/pipeline.yaml")).load()
        sink = CsvCandleSink(Path("out"), config.resolutions)

        executor = PipelineExecutor(config, sink)
        metrics = await executor.execute(Path("trades.csv"))
    """

    def __init__(self, config: RunConfig, sink: CandleSink):
        self.config = config
        self.sink = sink
        self.orchestrator = AggregationOrchestrator(
            resolutions=config.resolutions,
            epoch=config.epoch,
            session=config.session.to_window(),
        )
        self._lines_read = 0

    async def execute(self, path: Path) -> Dict[str, Any]:
        """
        Run the pipeline to completion.

        Returns:
            Run metrics (see AggregationOrchestrator.get_metrics)

        Raises:
            PipelineError: The terminating error of the run
        """
        deadline = self.config.deadline_seconds
        lines: Handoff[Line] = Handoff("lines")
        candles: Handoff[Candle] = Handoff("candles")

        await self.sink.start()
        try:
            async with _deadline(deadline):
                async with asyncio.TaskGroup() as tg:
                    tg.create_task(self._read(path, lines), name="reader")
                    tg.create_task(self._process(lines, candles), name="processor")
                    tg.create_task(self._write(candles), name="writer")
        except TimeoutError:
            logger.error(f"Deadline of {deadline}s exceeded; open candles discarded")
            raise DeadlineExceeded(deadline) from None
        except BaseExceptionGroup as eg:
            raise _terminating_error(eg)
        finally:
            await self.sink.stop()

        metrics = self.get_metrics()
        logger.info(f"Pipeline finished: {metrics}")
        return metrics

    async def _read(self, path: Path, lines: Handoff[Line]) -> None:
        self._lines_read = await read_trade_lines(path, lines)

    async def _process(self, lines: Handoff[Line], candles: Handoff[Candle]) -> None:
        async for line_number, line in lines:
            trade = parse_trade(line, line_number)
            for candle in self.orchestrator.ingest(trade):
                await candles.send(candle)

        for candle in self.orchestrator.flush():
            await candles.send(candle)
        await candles.close()

    async def _write(self, candles: Handoff[Candle]) -> None:
        async for candle in candles:
            await self.sink.write(candle)

    def get_metrics(self) -> Dict[str, Any]:
        metrics = self.orchestrator.get_metrics()
        metrics["lines_read"] = self._lines_read
        return metrics


def _deadline(seconds: Optional[float]):
    if seconds is None:
        return contextlib.nullcontext()
    return asyncio.timeout(seconds)


def _terminating_error(eg: BaseExceptionGroup) -> BaseException:
    """Pick the error to report from a failed TaskGroup, preferring PipelineError"""
    leaves = []
    pending = [eg]
    while pending:
        group = pending.pop(0)
        for exc in group.exceptions:
            if isinstance(exc, BaseExceptionGroup):
                pending.append(exc)
            else:
                leaves.append(exc)

    for exc in leaves:
        if isinstance(exc, PipelineError):
            return exc
    return leaves[0]
