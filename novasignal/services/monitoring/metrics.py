"""In-memory metrics snapshot for the API + console."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class MetricsSnapshot:
    connected: bool = False
    instrument: str = ""
    timeframe: str = ""
    stream_id: str = ""
    generation: int = 0
    last_tick_price: Optional[float] = None
    last_tick_epoch: Optional[int] = None
    ticks_seen: int = 0
    candles_closed: int = 0
    signal: Optional[str] = None
    confidence: Optional[int] = None
    rsi: Optional[float] = None
    ema20: Optional[float] = None
    ema50: Optional[float] = None
    trend: Optional[str] = None
