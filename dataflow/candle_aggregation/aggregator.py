"""
Candle Aggregator

Per-resolution windowing state machine. One ResolutionAggregator owns the open
candles of every ticker for a single resolution and hands back closed candles
when a window rolls over or when it is flushed.
"""

import logging
from datetime import datetime
from typing import Dict, List

from schemas.market_data import Candle, Resolution, Trade

from .session import DEFAULT_SESSION, SessionWindow, in_session

logger = logging.getLogger(__name__)


class CandleBuilder:
    """Builds a candle from incoming trades"""

    def __init__(self, trade: Trade):
        self.ticker = trade.ticker
        self.open = trade.price
        self.high = trade.price
        self.low = trade.price
        self.close = trade.price

    def add_trade(self, trade: Trade) -> None:
        """Add a trade to this candle"""
        price = trade.price
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price

    def build(self, window_start: datetime, resolution: Resolution) -> Candle:
        """Build the final Candle value"""
        return Candle(
            ticker=self.ticker,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            window_start=window_start,
            resolution=resolution,
        )


class ResolutionAggregator:
    """
    Aggregates trades into candles for one resolution.

    State is the start of the current window plus one open CandleBuilder per
    ticker. Windows are not aligned to the clock: they start at the configured
    epoch and advance one width at a time, or jump straight to a trade's own
    timestamp after a gap of two widths or more.

    Example usage:
        agg = ResolutionAggregator(Resolution.R5, epoch)
        closed = agg.ingest(trade)   # candles of the window that just closed
        residual = agg.flush()       # candles still open at end of stream
    """

    def __init__(
        self,
        resolution: Resolution,
        epoch: datetime,
        session: SessionWindow = DEFAULT_SESSION,
    ):
        self._resolution = resolution
        self._width = resolution.duration
        self._session = session
        self._window_start = epoch
        self._open: Dict[str, CandleBuilder] = {}

    @property
    def resolution(self) -> Resolution:
        return self._resolution

    @property
    def current_window_start(self) -> datetime:
        return self._window_start

    @property
    def open_tickers(self) -> List[str]:
        return list(self._open)

    def ingest(self, trade: Trade) -> List[Candle]:
        """
        Feed one trade into the state machine.

        Returns the candles closed by this trade, in open-map order. A trade that
        would roll the window onto an instant outside the session is dropped for
        this resolution: the closed candles are still returned but the window does
        not advance and the price is not recorded.
        """
        closed: List[Candle] = []
        diff = trade.timestamp - self._window_start

        if diff >= self._width:
            closed = self._emit()

            if diff >= 2 * self._width:
                logger.debug(
                    f"[{self._resolution.label}] resync {self._window_start} -> "
                    f"{trade.timestamp} on {trade.ticker}"
                )
                self._window_start = trade.timestamp
            else:
                next_start = self._window_start + self._width
                if not in_session(next_start, self._session):
                    logger.debug(
                        f"[{self._resolution.label}] dropped {trade.ticker} @ "
                        f"{trade.price} at {trade.timestamp}: rollover to "
                        f"{next_start} is outside the session"
                    )
                    return closed
                self._window_start = next_start

        builder = self._open.get(trade.ticker)
        if builder is None:
            self._open[trade.ticker] = CandleBuilder(trade)
        else:
            builder.add_trade(trade)

        return closed

    def flush(self) -> List[Candle]:
        """Emit every open candle tagged with the current window start"""
        return self._emit()

    def _emit(self) -> List[Candle]:
        builders = self._open
        self._open = {}
        candles = [
            builder.build(self._window_start, self._resolution)
            for builder in builders.values()
        ]
        if candles:
            logger.debug(
                f"[{self._resolution.label}] closed {len(candles)} candles "
                f"for window {self._window_start}"
            )
        return candles
