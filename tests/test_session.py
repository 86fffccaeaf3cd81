import random

import pytest

from novasignal.models.instruments import get_instrument
from novasignal.models.market_models import COLD_START_RESULT
from novasignal.services.session import MarketSession
from novasignal.services.strategy.confluence import analyze


def _session(**kwargs) -> MarketSession:
    kwargs.setdefault("bootstrap_candles", 0)
    return MarketSession.from_ids("BTCUSDT", "5s", **kwargs)


def test_no_result_before_first_candle_closes():
    s = _session()
    assert s.latest_result() is None
    assert s.on_tick(1000, 10.0) is None
    assert s.latest_result() is None
    assert s.last_price == 10.0


def test_boundary_runs_committed_and_transient_evaluation():
    s = _session()
    s.on_tick(1000, 10.0)
    s.on_tick(1002, 11.0)
    result = s.on_tick(1006, 12.0)

    # committed window has one candle -> cold start
    assert s.last_committed_result() == COLD_START_RESULT
    # the live result includes the candle still being built
    assert result == analyze(s.candles() + [s._aggregator.current])
    assert s.latest_result() is result
    assert s.candles_closed == 1


def test_bootstrap_gives_a_result_on_the_first_tick():
    s = _session(bootstrap_candles=60, rng=random.Random(4))
    result = s.on_tick(1000, 30_000.0)

    assert result is not None
    assert s.latest_result() is result
    assert len(s.candles()) == 60
    assert s.candles_closed == 0


def test_switch_discards_state_and_bumps_generation():
    s = _session(bootstrap_candles=60, rng=random.Random(4))
    s.on_tick(1000, 30_000.0)
    s.set_connected(True)

    generation = s.switch(get_instrument("ETHUSDT"), "1m")

    assert generation == 1
    assert s.instrument.id == "ETHUSDT"
    assert s.timeframe == "1m"
    assert s.latest_result() is None
    assert s.last_committed_result() is None
    assert s.last_price is None
    assert s.candles() == []
    assert s.connected is False


def test_tick_from_old_generation_is_ignored():
    s = _session()
    old = s.generation
    s.on_tick(1000, 10.0, generation=old)
    s.reset()

    assert s.on_tick(1005, 99.0, generation=old) is None
    assert s.last_price is None
    assert s.candles() == []

    s.on_tick(1010, 5.0, generation=s.generation)
    assert s.last_price == 5.0


def test_switch_keeps_unspecified_settings():
    s = _session()
    s.switch(timeframe="30s")
    assert s.instrument.id == "BTCUSDT"
    assert s._aggregator.interval_sec == 30


def test_unknown_ids_raise():
    with pytest.raises(ValueError):
        MarketSession.from_ids("DOGEUSDT", "5s")
    with pytest.raises(ValueError):
        MarketSession.from_ids("BTCUSDT", "3m")


def test_shared_stream_instruments_stay_distinct():
    gold = get_instrument("GOLDOTC")
    btc = get_instrument("BTCUSDT")
    assert gold.stream_id == btc.stream_id
    assert MarketSession(gold, "5s").instrument.id == "GOLDOTC"
