"""Synthetic "top traders" panel.

Cosmetic only: a random crowd biased toward the signal it is handed. It gets
the signal by value and has no access to the session that produced it.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from novasignal.models.market_models import TradeSignal

NAMES = ["Alex T.", "Sarah K.", "Dmitri V.", "Wei L.", "John D.", "Emma R.", "Marco P.", "Yuki S."]
AVATAR_URL = "https://picsum.photos/64/64?random={n}"


@dataclass(frozen=True)
class TraderProfile:
    id: str
    name: str
    rank: str
    avatar: str
    win_rate: int
    current_signal: TradeSignal
    pair: str
    timeframe: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["current_signal"] = self.current_signal.value
        return d


def _biased_signal(signal: TradeSignal, u: float) -> TradeSignal:
    if signal is TradeSignal.CALL:
        return TradeSignal.CALL if u > 0.3 else (TradeSignal.NEUTRAL if u > 0.15 else TradeSignal.PUT)
    if signal is TradeSignal.PUT:
        return TradeSignal.PUT if u > 0.3 else (TradeSignal.NEUTRAL if u > 0.15 else TradeSignal.CALL)
    return TradeSignal.CALL if u > 0.5 else TradeSignal.PUT


def get_top_traders(
    signal: TradeSignal,
    pair: str,
    timeframe: str,
    *,
    rng: Optional[random.Random] = None,
    count: int = 6,
) -> List[TraderProfile]:
    if not 0 <= count <= len(NAMES):
        raise ValueError(f"count must be between 0 and {len(NAMES)}")
    rnd = rng or random.Random()

    picked = rnd.sample(range(len(NAMES)), count)
    traders: List[TraderProfile] = []
    for i in picked:
        traders.append(
            TraderProfile(
                id=f"trader-{i}",
                name=NAMES[i],
                rank=f"#{rnd.randint(1, 50)}",
                avatar=AVATAR_URL.format(n=i + 1),
                win_rate=rnd.randint(75, 94),
                current_signal=_biased_signal(signal, rnd.random()),
                pair=pair,
                timeframe=timeframe,
            )
        )
    return traders
