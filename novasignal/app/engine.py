"""Runtime wiring: feed -> session -> latest result, plus the console engine loop."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from novasignal.infrastructure.binance.kline_feed import BinanceKlineFeed
from novasignal.infrastructure.logging.logging import (
    bind_session_context,
    clear_session_context,
    configure_logging,
    get_logger,
)
from novasignal.infrastructure.utils.config import NovaSignalConfig, load_config
from novasignal.models.instruments import get_instrument, interval_seconds
from novasignal.models.market_models import AnalysisResult, Tick
from novasignal.services.monitoring.metrics import MetricsSnapshot
from novasignal.services.scan.scan_gate import ScanGate, ScanOutcome
from novasignal.services.session import MarketSession
from novasignal.services.social.top_traders import get_top_traders


class SignalRuntime:
    """Owns one session, the feed that drives it and the metrics snapshot."""

    def __init__(self, config: NovaSignalConfig, *, session: Optional[MarketSession] = None) -> None:
        self.config = config
        self._log = get_logger("runtime")
        self.session = session or MarketSession.from_ids(
            config.session.instrument,
            config.session.timeframe,
            bootstrap_candles=config.session.bootstrap_candles,
        )
        self.metrics = MetricsSnapshot()
        self._sync_metrics_identity()

        feed_cfg = config.feed
        self.feed = BinanceKlineFeed(
            websocket_url=feed_cfg.websocket_url,
            stream_key=self.session.instrument.stream_id,
            on_tick=self.tick_handler(self.session.generation),
            on_status=self._on_status,
            stream_suffix=feed_cfg.stream_suffix,
            heartbeat_interval_sec=feed_cfg.heartbeat_interval_sec,
            pong_timeout_sec=feed_cfg.pong_timeout_sec,
            max_reconnect_backoff_sec=feed_cfg.max_reconnect_backoff_sec,
        )
        self.scan_gate = ScanGate(
            self.session,
            poll_interval=config.scan.poll_interval_sec,
            min_duration=config.scan.min_duration_sec,
            max_timeout=config.scan.max_timeout_sec,
        )

    def _sync_metrics_identity(self) -> None:
        m = self.metrics
        m.instrument = self.session.instrument.id
        m.timeframe = self.session.timeframe
        m.stream_id = self.session.instrument.stream_id
        m.generation = self.session.generation
        bind_session_context(m.instrument, m.timeframe, m.generation)

    def _on_status(self, connected: bool) -> None:
        self.session.set_connected(connected)
        self.metrics.connected = connected

    def tick_handler(self, generation: int) -> Callable[[Tick], Awaitable[None]]:
        """Handler bound to one session generation; ticks from an older feed are dropped by the session."""

        async def on_tick(tick: Tick) -> None:
            result = self.session.on_tick(tick.epoch, tick.price, generation=generation)
            if generation != self.session.generation:
                return
            m = self.metrics
            m.ticks_seen += 1
            m.last_tick_price = tick.price
            m.last_tick_epoch = tick.epoch
            m.candles_closed = self.session.candles_closed
            if result is not None:
                self._record(result)

        return on_tick

    def _record(self, result: AnalysisResult) -> None:
        m = self.metrics
        m.signal = result.signal.value
        m.confidence = result.confidence
        m.rsi = result.rsi
        m.ema20 = result.ema20
        m.ema50 = result.ema50
        m.trend = result.trend.value

    async def start(self) -> None:
        await self.feed.start()

    async def stop(self) -> None:
        await self.feed.stop()
        clear_session_context()

    async def switch(self, instrument_id: Optional[str] = None, timeframe: Optional[str] = None) -> int:
        """Change instrument and/or timeframe; all aggregation state is rebuilt."""
        instrument = get_instrument(instrument_id) if instrument_id else None
        if timeframe:
            interval_seconds(timeframe)

        await self.feed.stop()
        generation = self.session.switch(instrument, timeframe)
        self.metrics = MetricsSnapshot()
        self._sync_metrics_identity()
        await self.feed.switch(self.session.instrument.stream_id, self.tick_handler(generation))
        return generation

    async def scan(self) -> Dict[str, Any]:
        outcome: ScanOutcome = await self.scan_gate.scan()
        traders = get_top_traders(outcome.result.signal, self.session.instrument.name, self.session.timeframe)
        return {
            "instrument": self.session.instrument.id,
            "timeframe": self.session.timeframe,
            "result": outcome.result.to_dict(),
            "timed_out": outcome.timed_out,
            "used_fallback": outcome.used_fallback,
            "elapsed": round(outcome.elapsed, 3),
            "traders": [t.to_dict() for t in traders],
        }


async def run_engine(config_path: Path | None = None) -> None:
    config = load_config(config_path)
    configure_logging(config.log_level, json_logs=config.monitoring.json_logs)
    log = get_logger("engine")
    log.info(
        "config_loaded",
        instrument=config.session.instrument,
        timeframe=config.session.timeframe,
        feed=config.feed.websocket_url,
    )

    runtime = SignalRuntime(config)
    await runtime.start()
    try:
        while True:
            await asyncio.sleep(config.monitoring.console_update_interval_seconds)
            result = runtime.session.latest_result()
            if result is None:
                log.info("waiting_for_data", connected=runtime.session.connected)
                continue
            log.info(
                "latest_result",
                connected=runtime.session.connected,
                price=runtime.session.last_price,
                **result.to_dict(),
            )
    finally:
        await runtime.stop()


async def run_scan(config_path: Path | None = None) -> Dict[str, Any]:
    config = load_config(config_path)
    configure_logging(config.log_level, json_logs=config.monitoring.json_logs)
    log = get_logger("scan")

    runtime = SignalRuntime(config)
    await runtime.start()
    try:
        try:
            await runtime.feed.wait_until_connected(timeout=config.feed.connect_timeout_sec)
        except asyncio.TimeoutError:
            log.warning("feed_not_connected", timeout=config.feed.connect_timeout_sec)
        outcome = await runtime.scan()
    finally:
        await runtime.stop()

    print(json.dumps(outcome, indent=2))
    return outcome
