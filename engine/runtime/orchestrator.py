"""
Aggregation Orchestrator

Fans each admitted trade out to every resolution aggregator in a fixed order
and drains them all at end of stream.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List

from dataflow.candle_aggregation import (
    DEFAULT_SESSION,
    ResolutionAggregator,
    SessionWindow,
    in_session,
)
from schemas.market_data import Candle, Resolution, Trade

logger = logging.getLogger(__name__)


class FlushCoordinator:
    """
    Drains residual state of every aggregator exactly once.

    Aggregators are flushed in the order given, which is the ingestion order,
    so the flush of one resolution never overlaps ingestion into it.
    """

    def __init__(self, aggregators: List[ResolutionAggregator]):
        self._aggregators = aggregators
        self._flushed = False

    @property
    def flushed(self) -> bool:
        return self._flushed

    def flush(self) -> List[Candle]:
        if self._flushed:
            logger.warning("Flush requested twice; aggregators already drained")
            return []

        candles: List[Candle] = []
        for agg in self._aggregators:
            residual = agg.flush()
            logger.info(
                f"Flushed {len(residual)} open candles for {agg.resolution.label} "
                f"(window {agg.current_window_start})"
            )
            candles.extend(residual)

        self._flushed = True
        return candles


class AggregationOrchestrator:
    """
    Drives one ResolutionAggregator per resolution.

    The orchestrator:
    1. Filters trades through the session predicate
    2. Calls each aggregator's ingest() in ascending resolution order
    3. Returns the closed candles in that same order
    4. Drains every aggregator through the FlushCoordinator at end of stream

    Calls are synchronous; each trade is fully processed by every aggregator
    before the next one is accepted.

    Example usage:
        orchestrator = AggregationOrchestrator(
            resolutions=[Resolution.R5, Resolution.R30, Resolution.R240],
            epoch=datetime(2019, 1, 30, 7, tzinfo=timezone.utc),
        )

        for trade in trades:
            for candle in orchestrator.ingest(trade):
                sink.write(candle)

        for candle in orchestrator.flush():
            sink.write(candle)
    """

    def __init__(
        self,
        resolutions: Iterable[Resolution],
        epoch: datetime,
        session: SessionWindow = DEFAULT_SESSION,
    ):
        ordered = sorted(set(resolutions), key=lambda r: r.minutes)
        if not ordered:
            raise ValueError("At least one resolution is required")

        self.session = session
        self.aggregators = [
            ResolutionAggregator(resolution, epoch, session)
            for resolution in ordered
        ]
        self.flush_coordinator = FlushCoordinator(self.aggregators)

        self._trades_seen = 0
        self._trades_admitted = 0
        self._candles_emitted: Counter = Counter()

        logger.info(
            f"Orchestrator initialized: resolutions "
            f"{[r.label for r in ordered]}, epoch {epoch}"
        )

    @property
    def resolutions(self) -> List[Resolution]:
        return [agg.resolution for agg in self.aggregators]

    def admit(self, trade: Trade) -> bool:
        """True if the trade lies in the trading session"""
        return in_session(trade.timestamp, self.session)

    def ingest(self, trade: Trade) -> List[Candle]:
        """
        Process one trade through every aggregator.

        Returns:
            Candles closed by this trade, grouped by ascending resolution

        Raises:
            RuntimeError: If the orchestrator has already been flushed
        """
        if self.flush_coordinator.flushed:
            raise RuntimeError("Cannot ingest trades after flush")

        self._trades_seen += 1
        if not self.admit(trade):
            logger.debug(
                f"Filtered {trade.ticker} @ {trade.price} at {trade.timestamp}: "
                f"outside trading session"
            )
            return []

        self._trades_admitted += 1
        candles: List[Candle] = []
        for agg in self.aggregators:
            closed = agg.ingest(trade)
            self._candles_emitted[agg.resolution.label] += len(closed)
            candles.extend(closed)
        return candles

    def flush(self) -> List[Candle]:
        """Emit every open candle of every resolution"""
        candles = self.flush_coordinator.flush()
        for candle in candles:
            self._candles_emitted[candle.resolution.label] += 1
        return candles

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get orchestrator metrics.

        Returns:
            Dictionary with trade and candle counters
        """
        return {
            "trades_seen": self._trades_seen,
            "trades_admitted": self._trades_admitted,
            "trades_filtered": self._trades_seen - self._trades_admitted,
            "candles_emitted": {
                agg.resolution.label: self._candles_emitted[agg.resolution.label]
                for agg in self.aggregators
            },
            "window_starts": {
                agg.resolution.label: agg.current_window_start.isoformat()
                for agg in self.aggregators
            },
        }
