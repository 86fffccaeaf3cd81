"""Heikin-Ashi confluence strategy: binary CALL/PUT with a 0..99 confidence."""

from __future__ import annotations

from typing import Sequence

from novasignal.models.market_models import (
    COLD_START_RESULT,
    AnalysisResult,
    Candle,
    CandleColor,
    MacdReading,
    SmoothedCandle,
    SupertrendReading,
    TradeSignal,
    TrendLabel,
)
from novasignal.services.market.heikin_ashi import heikin_ashi
from novasignal.services.market.indicators import ema, macd, rsi, supertrend

BASE_CONFIDENCE = 30
TIE_BREAK_BELOW = 40
TIE_BREAK_CONFIDENCE = 45
MAX_CONFIDENCE = 99
SMALL_BODY_RATIO = 0.3


class SignalEngine:
    """
    Confluence scoring over the latest smoothed candle:
    - Direction: color of the latest Heikin-Ashi candle
    - Confidence: base 30 plus weighted agreement of EMA20/50, RSI, MACD,
      Supertrend and candle shape with that direction
    - Weak scores (< 40) are re-decided by price vs EMA20 at a fixed 45

    Holds no state; every call is a pure function of the candles passed in.
    """

    def analyze(self, candles: Sequence[Candle]) -> AnalysisResult:
        smoothed = heikin_ashi(candles)
        if len(smoothed) < 2:
            return COLD_START_RESULT

        current = smoothed[-1]
        prev = smoothed[-2]
        price = current.close
        closes = [c.close for c in candles]

        rsi_value = rsi(closes, 14)
        ema20 = ema(closes, 20)[-1]
        ema50 = ema(closes, 50)[-1]
        macd_reading = macd(closes)
        st = supertrend(candles, 10, 3)

        signal = TradeSignal.CALL if current.color is CandleColor.UP else TradeSignal.PUT
        if signal is TradeSignal.CALL:
            confidence = self._score_call(price, ema20, ema50, rsi_value, macd_reading, st, current, prev)
        else:
            confidence = self._score_put(price, ema20, ema50, rsi_value, macd_reading, st, current, prev)

        if ema20 > ema50:
            trend = TrendLabel.UP
        elif ema20 < ema50:
            trend = TrendLabel.DOWN
        else:
            trend = TrendLabel.SIDEWAYS

        # Force a binary answer even when nothing agrees
        if confidence < TIE_BREAK_BELOW:
            signal = TradeSignal.CALL if price > ema20 else TradeSignal.PUT
            confidence = TIE_BREAK_CONFIDENCE

        return AnalysisResult(
            signal=signal,
            confidence=min(confidence, MAX_CONFIDENCE),
            rsi=rsi_value,
            ema20=ema20,
            ema50=ema50,
            trend=trend,
            macd=macd_reading,
            supertrend=st,
        )

    @staticmethod
    def _is_small_body(candle: SmoothedCandle) -> bool:
        return candle.body_size < (candle.high - candle.low) * SMALL_BODY_RATIO

    def _score_call(
        self,
        price: float,
        ema20: float,
        ema50: float,
        rsi_value: float,
        m: MacdReading,
        st: SupertrendReading,
        current: SmoothedCandle,
        prev: SmoothedCandle,
    ) -> int:
        small = self._is_small_body(current)
        score = BASE_CONFIDENCE
        if price > ema20:
            score += 10
        if ema20 > ema50:
            score += 10
        if 50 < rsi_value < 80:
            score += 10
        if rsi_value < 30:
            score += 15   # oversold bounce
        if m.histogram > 0:
            score += 10
        if m.value > m.signal:
            score += 5
        if st.direction is TrendLabel.UP:
            score += 10
        if not small and not current.has_lower_wick:
            score += 10
        if small and prev.color is CandleColor.DOWN:
            score -= 10
        return score

    def _score_put(
        self,
        price: float,
        ema20: float,
        ema50: float,
        rsi_value: float,
        m: MacdReading,
        st: SupertrendReading,
        current: SmoothedCandle,
        prev: SmoothedCandle,
    ) -> int:
        small = self._is_small_body(current)
        score = BASE_CONFIDENCE
        if price < ema20:
            score += 10
        if ema20 < ema50:
            score += 10
        if 20 < rsi_value < 50:
            score += 10
        if rsi_value > 70:
            score += 15   # overbought reversal
        if m.histogram < 0:
            score += 10
        if m.value < m.signal:
            score += 5
        if st.direction is TrendLabel.DOWN:
            score += 10
        if not small and not current.has_upper_wick:
            score += 10
        if small and prev.color is CandleColor.UP:
            score -= 10
        return score


def analyze(candles: Sequence[Candle]) -> AnalysisResult:
    return SignalEngine().analyze(candles)
