"""Tradable instrument catalog and supported aggregation intervals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Instrument:
    id: str
    name: str
    stream_id: str    # feed-stream key; several instruments may share one


INSTRUMENTS: List[Instrument] = [
    Instrument("BTCUSDT", "Bitcoin (BTC/USDT)", "btcusdt"),
    Instrument("ETHUSDT", "Ethereum (ETH/USDT)", "ethusdt"),
    # OTC/forex ids replayed from crypto streams
    Instrument("GOLDOTC", "Gold OTC", "btcusdt"),
    Instrument("EURCHFOTC", "EUR/CHF OTC", "ethusdt"),
    Instrument("EURUSD", "EUR/USD OTC", "eurusdt"),
    Instrument("AUDUSD", "AUD/USD OTC", "bnbusdt"),
]

TIMEFRAMES: Dict[str, int] = {
    "5s": 5,
    "15s": 15,
    "30s": 30,
    "1m": 60,
    "2m": 120,
}

DEFAULT_INSTRUMENT = INSTRUMENTS[0].id
DEFAULT_TIMEFRAME = "15s"


def get_instrument(instrument_id: str) -> Instrument:
    for inst in INSTRUMENTS:
        if inst.id == instrument_id:
            return inst
    raise ValueError(f"Unknown instrument: {instrument_id!r}")


def interval_seconds(timeframe: str) -> int:
    try:
        return TIMEFRAMES[timeframe]
    except KeyError:
        raise ValueError(
            f"Unknown timeframe {timeframe!r}; expected one of {sorted(TIMEFRAMES)}"
        ) from None
