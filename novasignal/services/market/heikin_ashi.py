"""Heikin-Ashi transform.

HA_Close = (O + H + L + C) / 4
HA_Open  = (prev_HA_Open + prev_HA_Close) / 2   [first: raw open]
HA_High  = max(H, HA_Open, HA_Close)
HA_Low   = min(L, HA_Open, HA_Close)

Each element depends on the previous smoothed element, so the transform only
makes sense over a whole sequence, oldest first.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from novasignal.models.market_models import Candle, CandleColor, SmoothedCandle

WICK_EPSILON = 1e-5


def _first(candle: Candle) -> SmoothedCandle:
    ha_close = (candle.open + candle.high + candle.low + candle.close) / 4
    ha_open = candle.open
    body_top = max(ha_open, ha_close)
    body_bottom = min(ha_open, ha_close)
    return SmoothedCandle(
        time=candle.time,
        open=ha_open,
        high=candle.high,
        low=candle.low,
        close=ha_close,
        color=CandleColor.UP if ha_close >= ha_open else CandleColor.DOWN,
        has_upper_wick=candle.high > body_top,
        has_lower_wick=candle.low < body_bottom,
        body_size=abs(ha_close - ha_open),
        upper_wick_size=candle.high - body_top,
        lower_wick_size=body_bottom - candle.low,
    )


def _next(candle: Candle, prev: SmoothedCandle) -> SmoothedCandle:
    ha_close = (candle.open + candle.high + candle.low + candle.close) / 4
    ha_open = (prev.open + prev.close) / 2
    ha_high = max(candle.high, ha_open, ha_close)
    ha_low = min(candle.low, ha_open, ha_close)

    upper_wick = ha_high - max(ha_open, ha_close)
    lower_wick = min(ha_open, ha_close) - ha_low
    return SmoothedCandle(
        time=candle.time,
        open=ha_open,
        high=ha_high,
        low=ha_low,
        close=ha_close,
        color=CandleColor.UP if ha_close >= ha_open else CandleColor.DOWN,
        has_upper_wick=upper_wick > WICK_EPSILON,
        has_lower_wick=lower_wick > WICK_EPSILON,
        body_size=abs(ha_close - ha_open),
        upper_wick_size=upper_wick,
        lower_wick_size=lower_wick,
    )


def heikin_ashi(candles: Sequence[Candle]) -> List[SmoothedCandle]:
    """Smooth a raw candle sequence; output has the same length and order."""
    out: List[SmoothedCandle] = []
    prev: Optional[SmoothedCandle] = None
    for candle in candles:
        ha = _first(candle) if prev is None else _next(candle, prev)
        out.append(ha)
        prev = ha
    return out


def as_candles(smoothed: Sequence[SmoothedCandle]) -> List[Candle]:
    """Drop the shape fields, e.g. to feed a smoothed series back in as raw input."""
    return [Candle(time=s.time, open=s.open, high=s.high, low=s.low, close=s.close) for s in smoothed]
