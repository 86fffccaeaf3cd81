"""Scan gate: wait for a usable result before showing it.

Pure consumer-side debouncing. It polls ``session.latest_result()`` and
accepts it once a minimum time has elapsed, or gives up after a safety timeout
and takes whatever exists (or a fallback). It computes nothing itself.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from novasignal.infrastructure.logging.logging import get_logger
from novasignal.models.market_models import AnalysisResult, TradeSignal, fallback_result
from novasignal.services.session import MarketSession


class ScanInProgressError(RuntimeError):
    pass


@dataclass(frozen=True)
class ScanOutcome:
    result: AnalysisResult
    timed_out: bool
    used_fallback: bool
    elapsed: float


class ScanGate:
    def __init__(
        self,
        session: MarketSession,
        *,
        poll_interval: float = 0.2,
        min_duration: float = 2.0,
        max_timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if min_duration < 0:
            raise ValueError("min_duration must be >= 0")
        if max_timeout < min_duration:
            raise ValueError("max_timeout must be >= min_duration")

        self._session = session
        self._poll_interval = poll_interval
        self._min_duration = min_duration
        self._max_timeout = max_timeout
        self._clock = clock
        self._sleep = sleep
        self._busy = False
        self._logger = get_logger("scan_gate")

    @property
    def busy(self) -> bool:
        return self._busy

    @staticmethod
    def _usable(result: Optional[AnalysisResult]) -> bool:
        return result is not None and result.signal is not TradeSignal.WAITING

    async def scan(self) -> ScanOutcome:
        if self._busy:
            raise ScanInProgressError("A scan is already running")
        self._busy = True
        try:
            return await self._run()
        finally:
            self._busy = False

    async def _run(self) -> ScanOutcome:
        started = self._clock()
        self._logger.info("scan_started", min_duration=self._min_duration, max_timeout=self._max_timeout)

        while True:
            await self._sleep(self._poll_interval)
            elapsed = self._clock() - started
            current = self._session.latest_result()

            if self._usable(current) and elapsed >= self._min_duration:
                assert current is not None
                self._logger.info(
                    "scan_accepted",
                    elapsed=round(elapsed, 3),
                    signal=current.signal.value,
                    confidence=current.confidence,
                )
                return ScanOutcome(result=current, timed_out=False, used_fallback=False, elapsed=elapsed)

            if elapsed > self._max_timeout:
                if current is None:
                    current = fallback_result(self._session.last_price or 0.0)
                    used_fallback = True
                else:
                    used_fallback = False
                self._logger.warning("scan_timeout", elapsed=round(elapsed, 3), used_fallback=used_fallback)
                return ScanOutcome(result=current, timed_out=True, used_fallback=used_fallback, elapsed=elapsed)
