import json
import random

from novasignal.infrastructure.binance.kline_feed import BinanceKlineFeed, parse_kline_message, reconnect_delay
from novasignal.models.market_models import Tick


def _kline(event_ms=1_700_000_000_123, close="43000.5"):
    return {"e": "kline", "E": event_ms, "s": "BTCUSDT", "k": {"t": event_ms - 123, "c": close, "x": False}}


def test_parse_kline_json():
    tick = parse_kline_message(json.dumps(_kline()), "btcusdt")
    assert tick == Tick(symbol="btcusdt", epoch=1_700_000_000, price=43000.5)


def test_parse_accepts_decoded_dict():
    assert parse_kline_message(_kline(close="1.5"), "ethusdt").price == 1.5


def test_non_kline_messages_are_ignored():
    assert parse_kline_message(json.dumps({"result": None, "id": 1}), "btcusdt") is None
    assert parse_kline_message("not json", "btcusdt") is None
    assert parse_kline_message(json.dumps([1, 2, 3]), "btcusdt") is None
    assert parse_kline_message({"k": {"c": "1"}}, "btcusdt") is None
    assert parse_kline_message(_kline(close="abc"), "btcusdt") is None
    assert parse_kline_message({"E": 1, "k": {}}, "btcusdt") is None


async def test_dispatch_delivers_ticks_with_stream_key():
    seen = []

    async def on_tick(tick):
        seen.append(tick)

    feed = BinanceKlineFeed("wss://example.test/ws/", "bnbusdt", on_tick)
    assert feed.url == "wss://example.test/ws/bnbusdt@kline_1s"

    await feed.dispatch(json.dumps(_kline(close="300")))
    await feed.dispatch(json.dumps({"ping": 1}))

    assert seen == [Tick("bnbusdt", 1_700_000_000, 300.0)]


async def test_handler_errors_do_not_propagate():
    async def broken(tick):
        raise RuntimeError("boom")

    feed = BinanceKlineFeed("wss://example.test/ws", "btcusdt", broken)
    tick = await feed.dispatch(_kline())
    assert tick is not None


async def test_status_callback_and_stop_without_start():
    statuses = []

    async def on_tick(tick):
        return None

    feed = BinanceKlineFeed("wss://example.test/ws", "btcusdt", on_tick, on_status=statuses.append)
    feed._set_connected(True)
    assert feed.is_connected
    await feed.stop()

    assert statuses == [True, False]
    assert not feed.is_connected


def test_non_finite_prices_are_ignored():
    for close in ("NaN", "nan", "Infinity", "-inf"):
        assert parse_kline_message(_kline(close=close), "btcusdt") is None


async def test_non_finite_price_never_reaches_handler():
    seen = []

    async def on_tick(tick):
        seen.append(tick)

    feed = BinanceKlineFeed("wss://example.test/ws", "btcusdt", on_tick)
    assert await feed.dispatch(json.dumps(_kline(close="NaN"))) is None
    assert seen == []


def test_reconnect_delay_doubles_with_jitter():
    rng = random.Random(3)
    for attempt, base in [(0, 1.0), (1, 2.0), (3, 8.0)]:
        delay = reconnect_delay(attempt, 60.0, rng=rng)
        assert base <= delay <= base * 1.3


def test_reconnect_delay_is_capped():
    rng = random.Random(3)
    assert reconnect_delay(6, 60.0, rng=rng) == 60.0
    assert reconnect_delay(10_000, 45.0, rng=rng) == 45.0
