"""Binance kline stream client using asyncio + websockets.

Features:
- One public kline stream per connection ({stream_key}@kline_1s)
- Heartbeat (ping) task
- Reconnection with exponential backoff + jitter
- Connection status reported to the host (the core never retries anything)
- Non-kline messages are ignored
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from novasignal.infrastructure.logging.logging import get_logger
from novasignal.models.market_models import Tick

JsonDict = Dict[str, Any]
TickHandler = Callable[[Tick], Awaitable[None]]
StatusHandler = Callable[[bool], None]


class FeedError(RuntimeError):
    pass


def parse_kline_message(raw: Union[str, bytes, JsonDict], symbol: str) -> Optional[Tick]:
    """Turn one stream message into a Tick; anything not kline-shaped gives None."""
    if isinstance(raw, (str, bytes)):
        try:
            msg = json.loads(raw)
        except ValueError:
            return None
    else:
        msg = raw

    if not isinstance(msg, dict):
        return None
    k = msg.get("k")
    event_ms = msg.get("E")
    if not isinstance(k, dict) or event_ms is None:
        return None

    try:
        price = float(k.get("c"))
        epoch = int(event_ms) // 1000
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price):
        return None
    return Tick(symbol=symbol, epoch=epoch, price=price)


MAX_BACKOFF_EXPONENT = 16


def reconnect_delay(attempt: int, max_backoff_sec: float, rng: Optional[random.Random] = None) -> float:
    """Seconds to wait before reconnect number ``attempt``.

    Starts at 1s and doubles per failed attempt, plus up to 30% jitter, never
    above ``max_backoff_sec``.
    """
    rnd = rng or random
    base = min(max_backoff_sec, 2.0 ** min(max(attempt, 0), MAX_BACKOFF_EXPONENT))
    return min(max_backoff_sec, base + rnd.random() * 0.3 * base)


class BinanceKlineFeed:
    def __init__(
        self,
        websocket_url: str,
        stream_key: str,
        on_tick: TickHandler,
        *,
        on_status: Optional[StatusHandler] = None,
        stream_suffix: str = "@kline_1s",
        heartbeat_interval_sec: float = 15.0,
        pong_timeout_sec: float = 5.0,
        max_reconnect_backoff_sec: float = 60.0,
    ) -> None:
        self._logger = get_logger("kline_feed")
        self._base_url = websocket_url.rstrip("/")
        self._stream_key = stream_key
        self._stream_suffix = stream_suffix
        self._on_tick = on_tick
        self._on_status = on_status
        self._heartbeat_interval = heartbeat_interval_sec
        self._pong_timeout = pong_timeout_sec
        self._max_backoff = max_reconnect_backoff_sec

        self._ws: Any = None
        self._connected_evt = asyncio.Event()
        self._stop_evt = asyncio.Event()
        self._runner_task: Optional[asyncio.Task[None]] = None
        self._ticks_this_connection = 0

    @property
    def url(self) -> str:
        return f"{self._base_url}/{self._stream_key}{self._stream_suffix}"

    @property
    def stream_key(self) -> str:
        return self._stream_key

    @property
    def is_connected(self) -> bool:
        return self._connected_evt.is_set()

    async def start(self) -> None:
        self._stop_evt.clear()
        self._runner_task = asyncio.create_task(self._run_forever())

    async def stop(self) -> None:
        self._stop_evt.set()
        task, self._runner_task = self._runner_task, None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._disconnect()

    async def switch(self, stream_key: str, on_tick: Optional[TickHandler] = None) -> None:
        """Stop, retarget and restart. No message of the old stream is delivered afterwards."""
        await self.stop()
        self._stream_key = stream_key
        if on_tick is not None:
            self._on_tick = on_tick
        await self.start()

    async def wait_until_connected(self, timeout: float = 30.0) -> None:
        await asyncio.wait_for(self._connected_evt.wait(), timeout=timeout)

    def _set_connected(self, connected: bool) -> None:
        if connected:
            self._connected_evt.set()
        else:
            self._connected_evt.clear()
        if self._on_status:
            self._on_status(connected)

    async def _run_forever(self) -> None:
        attempt = 0
        while not self._stop_evt.is_set():
            self._ticks_this_connection = 0
            try:
                await self._connect_and_run()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error("feed_connection_error", error=str(e), stream=self._stream_key)

            if self._stop_evt.is_set():
                break

            # a connection that actually streamed resets the backoff
            attempt = 0 if self._ticks_this_connection else attempt + 1
            delay = reconnect_delay(attempt, self._max_backoff)
            self._logger.warning(
                "feed_reconnect_scheduled",
                stream=self._stream_key,
                attempt=attempt,
                delay_sec=round(delay, 2),
            )
            await asyncio.sleep(delay)

    async def _connect_and_run(self) -> None:
        url = self.url
        self._logger.info("ws_connect", url=url)

        async with websockets.connect(
            url,
            ping_interval=None,  # we manage ping manually
            close_timeout=5,
            max_queue=256,
        ) as ws:
            self._ws = ws
            self._set_connected(True)
            reader = asyncio.create_task(self._reader_loop(ws))
            heartbeat = asyncio.create_task(self._heartbeat_loop(ws))
            try:
                done, pending = await asyncio.wait(
                    [reader, heartbeat],
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for t in pending:
                    t.cancel()
                for t in done:
                    exc = t.exception()
                    if exc:
                        raise exc
            finally:
                reader.cancel()
                heartbeat.cancel()
                self._ws = None
                self._set_connected(False)

    async def _disconnect(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                self._logger.debug("ws_close_error", error=str(e))
        if self.is_connected:
            self._set_connected(False)

    async def dispatch(self, raw: Union[str, bytes, JsonDict]) -> Optional[Tick]:
        """Parse one message and hand the tick to the handler; handler errors are logged, not raised."""
        tick = parse_kline_message(raw, self._stream_key)
        if tick is None:
            return None
        self._ticks_this_connection += 1
        try:
            await self._on_tick(tick)
        except Exception as e:
            self._logger.warning("on_tick_error", error=str(e), stream=self._stream_key)
        return tick

    async def _reader_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                if self._stop_evt.is_set():
                    return
                await self.dispatch(raw)
        except ConnectionClosed:
            # normal close or server drop -> let the runner reconnect
            self._logger.info("ws_closed", stream=self._stream_key)

    async def _heartbeat_loop(self, ws: Any) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            try:
                pong_waiter = await ws.ping()
                await asyncio.wait_for(pong_waiter, timeout=self._pong_timeout)
                self._logger.debug("ws_ping_ok")
            except Exception as e:
                self._logger.warning("ws_ping_failed", error=str(e))
                raise FeedError("heartbeat failed") from e
