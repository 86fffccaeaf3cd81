"""Build candles from ticks."""

from __future__ import annotations

import random
from collections import deque
from dataclasses import replace
from typing import Deque, List, Optional, Tuple

from novasignal.infrastructure.logging.logging import get_logger
from novasignal.models.market_models import Candle
from novasignal.services.market.bootstrap import BOOTSTRAP_CANDLES, generate_history

WINDOW_SIZE = 100


def _bucket(epoch: int, interval_sec: int) -> int:
    """Index of the time slot an epoch falls into."""
    return epoch // interval_sec


class CandleAggregator:
    """Accumulates ticks into fixed-width OHLC candles.

    - Owns the committed window (last WINDOW_SIZE candles, oldest evicted)
    - Owns the in-progress candle, which is never committed until its bucket closes
    - Seeds the window with synthetic history on the first tick of a session
    """

    def __init__(
        self,
        interval_sec: int,
        *,
        window_size: int = WINDOW_SIZE,
        bootstrap_candles: int = BOOTSTRAP_CANDLES,
        rng: Optional[random.Random] = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be > 0")
        if window_size <= 0:
            raise ValueError("window_size must be > 0")
        if bootstrap_candles < 0:
            raise ValueError("bootstrap_candles must be >= 0")

        self.interval_sec = int(interval_sec)
        self.window_size = int(window_size)
        self.bootstrap_candles = int(bootstrap_candles)
        self._rng = rng
        self._logger = get_logger("candle_aggregator", interval_sec=self.interval_sec)

        self._window: Deque[Candle] = deque(maxlen=self.window_size)
        self._current: Optional[Candle] = None
        self._bucket: Optional[int] = None
        self._initialized = False

    @property
    def current(self) -> Optional[Candle]:
        return self._current

    @property
    def window(self) -> List[Candle]:
        return list(self._window)

    def reset(self) -> None:
        """Discard window, in-progress candle and bucket; the next tick bootstraps again."""
        self._window.clear()
        self._current = None
        self._bucket = None
        self._initialized = False

    def snapshot(self) -> List[Candle]:
        """Committed window plus the in-progress candle (not committed)."""
        out = list(self._window)
        if self._current is not None:
            out.append(self._current)
        return out

    def on_tick(self, epoch: int, price: float) -> Tuple[Optional[Candle], List[Candle]]:
        """Feed one tick.

        Returns the candle finalized by this tick (or None) and the live snapshot.
        """
        epoch = int(epoch)
        price = float(price)

        if not self._initialized:
            if self.bootstrap_candles:
                self._window.extend(
                    generate_history(
                        price,
                        epoch,
                        self.interval_sec,
                        count=self.bootstrap_candles,
                        rng=self._rng,
                    )
                )
            self._initialized = True

        bucket = _bucket(epoch, self.interval_sec)
        finalized: Optional[Candle] = None

        if self._bucket is not None and bucket < self._bucket:
            self._logger.debug("stale_tick_dropped", epoch=epoch, bucket=bucket, open_bucket=self._bucket)
            return None, self.snapshot()

        if bucket != self._bucket:
            # New bucket -> close previous candle and open a new one
            if self._current is not None:
                finalized = self._current
                self._window.append(finalized)
                self._logger.debug(
                    "candle_finalized",
                    time=finalized.time,
                    open=finalized.open,
                    high=finalized.high,
                    low=finalized.low,
                    close=finalized.close,
                )

            self._bucket = bucket
            self._current = Candle(time=epoch, open=price, high=price, low=price, close=price)
        else:
            c = self._current
            assert c is not None
            self._current = replace(c, high=max(c.high, price), low=min(c.low, price), close=price)

        return finalized, self.snapshot()
