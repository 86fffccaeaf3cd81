from __future__ import annotations

from typing import List

from novasignal.models.market_models import Candle


def candle(time: int, o: float, h: float, l: float, c: float) -> Candle:
    return Candle(time=time, open=o, high=h, low=l, close=c)


def flat(n: int, price: float = 100.0, start: int = 0, step: int = 60) -> List[Candle]:
    return [candle(start + i * step, price, price, price, price) for i in range(n)]


def rising(n: int, base: float = 100.0, step: int = 60) -> List[Candle]:
    """Each bar opens at its low and closes at its high, one point above the last."""
    return [candle(i * step, base + i, base + i + 1, base + i, base + i + 1) for i in range(n)]


def falling(n: int, base: float = 200.0, step: int = 60) -> List[Candle]:
    """Mirror of ``rising``: opens at the high, closes at the low, one point lower each bar."""
    return [candle(i * step, base - i, base - i, base - i - 1, base - i - 1) for i in range(n)]
