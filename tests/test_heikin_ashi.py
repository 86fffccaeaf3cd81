import random

import pytest

from novasignal.models.market_models import CandleColor
from novasignal.services.market.heikin_ashi import as_candles, heikin_ashi

from helpers import candle, flat, rising


def _random_walk(n: int, seed: int):
    rnd = random.Random(seed)
    out = []
    price = 100.0
    for i in range(n):
        o = price
        c = price + rnd.uniform(-1, 1)
        out.append(candle(i, o, max(o, c) + rnd.random(), min(o, c) - rnd.random(), c))
        price = c
    return out


def test_empty_sequence():
    assert heikin_ashi([]) == []


def test_first_candle_keeps_raw_open_and_range():
    raw = [candle(0, 10, 12, 9, 11)]
    ha = heikin_ashi(raw)[0]

    assert ha.open == 10
    assert ha.close == pytest.approx(10.5)
    assert ha.high == 12 and ha.low == 9
    assert ha.color is CandleColor.UP
    assert ha.body_size == pytest.approx(0.5)
    assert ha.upper_wick_size == pytest.approx(1.5)
    assert ha.lower_wick_size == pytest.approx(1.0)


def test_recursive_open_uses_previous_smoothed_candle():
    raw = _random_walk(50, seed=11)
    ha = heikin_ashi(raw)

    assert len(ha) == len(raw)
    assert ha[0].open == raw[0].open
    for i in range(1, len(ha)):
        assert ha[i].open == pytest.approx((ha[i - 1].open + ha[i - 1].close) / 2)
        assert ha[i].close == pytest.approx((raw[i].open + raw[i].high + raw[i].low + raw[i].close) / 4)
        assert ha[i].high >= max(ha[i].open, ha[i].close)
        assert ha[i].low <= min(ha[i].open, ha[i].close)
        assert ha[i].upper_wick_size >= 0 and ha[i].lower_wick_size >= 0


def test_second_candle_values():
    ha = heikin_ashi([candle(0, 10, 12, 9, 11), candle(1, 11, 13, 10, 12)])
    second = ha[1]

    assert second.close == pytest.approx(11.5)
    assert second.open == pytest.approx(10.25)
    assert second.high == 13
    assert second.low == 10
    assert second.color is CandleColor.UP
    assert second.has_upper_wick and second.has_lower_wick


def test_float_noise_is_not_a_wick():
    raw = flat(1, 10.0) + [candle(1, 10.0, 10.0000002, 10.0, 10.0000002)]
    second = heikin_ashi(raw)[1]

    assert 0 < second.upper_wick_size < 1e-5
    assert second.has_upper_wick is False
    assert second.has_lower_wick is False


def test_steady_rise_has_no_lower_wick():
    last = heikin_ashi(rising(60))[-1]

    assert last.color is CandleColor.UP
    assert last.has_lower_wick is False
    assert last.body_size == pytest.approx(2.0)


def test_equal_open_close_counts_as_up():
    assert heikin_ashi(flat(3))[-1].color is CandleColor.UP


def test_transform_is_not_idempotent():
    raw = [candle(0, 10, 12, 9, 11), candle(1, 11, 13, 10, 12), candle(2, 12, 12.5, 10.5, 11)]
    once = heikin_ashi(raw)
    twice = heikin_ashi(as_candles(once))

    assert [(c.open, c.close) for c in twice] != [(c.open, c.close) for c in once]
    assert twice[0].close == pytest.approx(10.375)
