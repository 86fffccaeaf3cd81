"""Market domain models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class TradeSignal(str, Enum):
    CALL = "CALL"
    PUT = "PUT"
    # Never emitted by the engine; used by consumers only
    NEUTRAL = "NEUTRAL"
    WAITING = "WAITING"


class TrendLabel(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    SIDEWAYS = "SIDEWAYS"


class CandleColor(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Tick:
    symbol: str       # feed-stream key, not the nominal instrument id
    epoch: int        # seconds
    price: float


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float
    synthetic: bool = False   # True for bootstrap history

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SmoothedCandle:
    """Heikin-Ashi candle plus shape fields."""

    time: int
    open: float
    high: float
    low: float
    close: float
    color: CandleColor
    has_upper_wick: bool
    has_lower_wick: bool
    body_size: float
    upper_wick_size: float
    lower_wick_size: float


@dataclass(frozen=True)
class MacdReading:
    value: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class SupertrendReading:
    direction: TrendLabel = TrendLabel.UP   # UP | DOWN
    value: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    signal: TradeSignal            # CALL | PUT
    confidence: int                # 0..99
    rsi: float
    ema20: float
    ema50: float
    trend: TrendLabel
    macd: MacdReading
    supertrend: SupertrendReading

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signal": self.signal.value,
            "confidence": self.confidence,
            "rsi": self.rsi,
            "ema20": self.ema20,
            "ema50": self.ema50,
            "trend": self.trend.value,
            "macd": asdict(self.macd),
            "supertrend": {
                "direction": self.supertrend.direction.value,
                "value": self.supertrend.value,
            },
        }


COLD_START_RESULT = AnalysisResult(
    signal=TradeSignal.CALL,
    confidence=50,
    rsi=50.0,
    ema20=0.0,
    ema50=0.0,
    trend=TrendLabel.SIDEWAYS,
    macd=MacdReading(),
    supertrend=SupertrendReading(),
)


def fallback_result(price: float) -> AnalysisResult:
    """Result a consumer shows when it gives up waiting for a computed one."""
    return AnalysisResult(
        signal=TradeSignal.CALL,
        confidence=45,
        rsi=50.0,
        ema20=float(price),
        ema50=float(price),
        trend=TrendLabel.SIDEWAYS,
        macd=MacdReading(),
        supertrend=SupertrendReading(),
    )
