"""Market session: one instrument + timeframe, its aggregator and the latest analysis.

The session is the single owner of the live candle window and of the latest
computed result. Hosts (feed handler, API, scan gate) only talk to it through
``on_tick``, ``latest_result`` and ``switch``.
"""

from __future__ import annotations

import random
import threading
from typing import List, Optional

from novasignal.infrastructure.logging.logging import get_logger
from novasignal.models.instruments import Instrument, get_instrument, interval_seconds
from novasignal.models.market_models import AnalysisResult, Candle
from novasignal.services.market.bootstrap import BOOTSTRAP_CANDLES
from novasignal.services.market.candle_builder import CandleAggregator
from novasignal.services.strategy.confluence import SignalEngine


class MarketSession:
    def __init__(
        self,
        instrument: Instrument,
        timeframe: str,
        *,
        engine: Optional[SignalEngine] = None,
        bootstrap_candles: int = BOOTSTRAP_CANDLES,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._logger = get_logger("session")
        self._lock = threading.RLock()
        self._engine = engine or SignalEngine()
        self._bootstrap_candles = bootstrap_candles
        self._rng = rng

        self._instrument = instrument
        self._timeframe = timeframe
        self._aggregator = self._new_aggregator(timeframe)
        self._generation = 0

        self._latest: Optional[AnalysisResult] = None
        self._committed: Optional[AnalysisResult] = None
        self._last_price: Optional[float] = None
        self._connected = False
        self._candles_closed = 0

    @classmethod
    def from_ids(cls, instrument_id: str, timeframe: str, **kwargs) -> "MarketSession":
        return cls(get_instrument(instrument_id), timeframe, **kwargs)

    def _new_aggregator(self, timeframe: str) -> CandleAggregator:
        return CandleAggregator(
            interval_seconds(timeframe),
            bootstrap_candles=self._bootstrap_candles,
            rng=self._rng,
        )

    # ---------------- read side ----------------

    @property
    def instrument(self) -> Instrument:
        return self._instrument

    @property
    def timeframe(self) -> str:
        return self._timeframe

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_price(self) -> Optional[float]:
        return self._last_price

    @property
    def candles_closed(self) -> int:
        """Candles finalized from real ticks since the last reset."""
        return self._candles_closed

    @property
    def connected(self) -> bool:
        return self._connected

    def set_connected(self, connected: bool) -> None:
        self._connected = bool(connected)

    def latest_result(self) -> Optional[AnalysisResult]:
        """Newest computed result, or None before anything has been computed."""
        return self._latest

    def last_committed_result(self) -> Optional[AnalysisResult]:
        return self._committed

    def candles(self) -> List[Candle]:
        with self._lock:
            return self._aggregator.window

    # ---------------- write side ----------------

    def on_tick(self, epoch: int, price: float, generation: Optional[int] = None) -> Optional[AnalysisResult]:
        """Process one tick to completion.

        Ticks tagged with an older ``generation`` belong to a feed that was
        torn down by ``switch`` and are ignored.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                self._logger.debug("stale_generation_tick", tick_generation=generation, generation=self._generation)
                return None

            self._last_price = float(price)
            finalized, snapshot = self._aggregator.on_tick(epoch, price)

            if finalized is not None:
                self._candles_closed += 1
                self._committed = self._engine.analyze(self._aggregator.window)
                self._latest = self._committed
                self._logger.info(
                    "candle_closed",
                    time=finalized.time,
                    close=finalized.close,
                    signal=self._committed.signal.value,
                    confidence=self._committed.confidence,
                )

            # Real-time evaluation including the candle still being built
            if self._aggregator.window and self._aggregator.current is not None:
                self._latest = self._engine.analyze(snapshot)

            return self._latest

    def switch(self, instrument: Optional[Instrument] = None, timeframe: Optional[str] = None) -> int:
        """Tear down all aggregation state and start over; returns the new generation."""
        with self._lock:
            new_instrument = instrument or self._instrument
            new_timeframe = timeframe or self._timeframe
            aggregator = self._new_aggregator(new_timeframe)

            self._instrument = new_instrument
            self._timeframe = new_timeframe
            self._aggregator = aggregator
            self._latest = None
            self._committed = None
            self._last_price = None
            self._candles_closed = 0
            self._connected = False   # the feed reports again once re-subscribed
            self._generation += 1

            self._logger.info(
                "session_reset",
                instrument=new_instrument.id,
                timeframe=new_timeframe,
                generation=self._generation,
            )
            return self._generation

    def reset(self) -> int:
        return self.switch()
