"""Stateless indicators (EMA, RSI, MACD, ATR, Supertrend).

Every function recomputes from the full series it is given; nothing is carried
between calls.
"""

from __future__ import annotations

from typing import List, Sequence

from novasignal.models.market_models import Candle, MacdReading, SupertrendReading, TrendLabel


def _validate_period(name: str, value: int) -> None:
    if int(value) != value or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


def ema(series: Sequence[float], period: int) -> List[float]:
    """EMA seeded with the first value (no SMA seed)."""
    _validate_period("period", period)
    if not series:
        return []

    k = 2.0 / (period + 1.0)
    prev = float(series[0])
    out = [prev]
    for price in series[1:]:
        prev = (float(price) - prev) * k + prev
        out.append(prev)
    return out


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """Flat-average RSI over the trailing ``period`` transitions.

    Not Wilder-smoothed: gains and losses are summed from scratch on every call.
    """
    _validate_period("period", period)
    if len(closes) < 2:
        return 50.0

    effective = min(len(closes) - 1, period)
    gains = 0.0
    losses = 0.0
    for i in range(len(closes) - effective, len(closes)):
        change = float(closes[i]) - float(closes[i - 1])
        if change >= 0:
            gains += change
        else:
            losses += -change

    avg_gain = gains / effective
    avg_loss = losses / effective

    if avg_loss == 0.0:
        # A lone unchanged pair reads neutral; any longer loss-free tail, flat or not, is 100
        if len(closes) == 2 and avg_gain == 0.0:
            return 50.0
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MacdReading:
    _validate_period("fast", fast)
    _validate_period("slow", slow)
    _validate_period("signal_period", signal_period)
    if not closes:
        return MacdReading()

    fast_ema = ema(closes, fast)
    slow_ema = ema(closes, slow)
    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_line = ema(macd_line, signal_period)

    value = macd_line[-1]
    sig = signal_line[-1]
    return MacdReading(value=value, signal=sig, histogram=value - sig)


def true_ranges(candles: Sequence[Candle]) -> List[float]:
    """TR for each adjacent pair: max(H-L, |H-prevC|, |L-prevC|)."""
    out: List[float] = []
    for i in range(1, len(candles)):
        curr = candles[i]
        prev_close = candles[i - 1].close
        out.append(
            max(
                curr.high - curr.low,
                abs(curr.high - prev_close),
                abs(curr.low - prev_close),
            )
        )
    return out


def atr(candles: Sequence[Candle], period: int = 10) -> float:
    """Simple mean of the last ``period`` true ranges (or all of them if fewer)."""
    _validate_period("period", period)
    trs = true_ranges(candles)
    if not trs:
        return 0.0
    recent = trs[-period:]
    return sum(recent) / len(recent)


def supertrend(
    candles: Sequence[Candle],
    period: int = 10,
    multiplier: float = 3.0,
) -> SupertrendReading:
    """Single-step Supertrend on the last candle.

    No band is carried from one candle to the next: the last candle's close is
    compared against its own basic lower band only.
    """
    _validate_period("period", period)
    if multiplier <= 0:
        raise ValueError(f"multiplier must be > 0, got {multiplier!r}")
    if len(candles) < period + 1:
        return SupertrendReading(direction=TrendLabel.UP, value=0.0)

    avg_range = atr(candles, period)
    last = candles[-1]
    hl2 = (last.high + last.low) / 2.0
    basic_upper = hl2 + multiplier * avg_range
    basic_lower = hl2 - multiplier * avg_range

    if last.close > basic_lower:
        return SupertrendReading(direction=TrendLabel.UP, value=basic_lower)
    return SupertrendReading(direction=TrendLabel.DOWN, value=basic_upper)
