"""Synthetic warm-up history.

The first tick of a session has nothing behind it, so a short random walk is
fabricated around the first observed price. Every bar produced here is marked
``synthetic=True`` and must never be mistaken for observed data.
"""

from __future__ import annotations

import random
from typing import List, Optional

from novasignal.models.market_models import Candle

BOOTSTRAP_CANDLES = 60
VOLATILITY_FRACTION = 0.0002


def generate_history(
    base_price: float,
    base_time: int,
    interval_sec: int,
    *,
    count: int = BOOTSTRAP_CANDLES,
    rng: Optional[random.Random] = None,
) -> List[Candle]:
    """Return ``count`` candles ending one interval before ``base_time``, oldest first."""
    rnd = rng or random.Random()
    volatility = base_price * VOLATILITY_FRACTION

    history: List[Candle] = []
    price = float(base_price)
    for i in range(count, 0, -1):
        change = (rnd.random() - 0.5) * volatility
        open_ = price
        close = price + change
        high = max(open_, close) + rnd.random() * volatility * 0.5
        low = min(open_, close) - rnd.random() * volatility * 0.5
        history.append(
            Candle(
                time=base_time - i * interval_sec,
                open=open_,
                high=high,
                low=low,
                close=close,
                synthetic=True,
            )
        )
        price = close
    return history
