"""Indicators (RSI, MACD, SMA) over a close-price series, with warm-up handling.

All functions are pure: same input list, same output. Values are full precision;
rounding belongs to IndicatorSnapshot.display_values().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from coinsight.models.market_models import IndicatorSnapshot


def _mean(values: Sequence[float]) -> float:
    # running mean: a constant window yields exactly that constant
    mean = 0.0
    for count, value in enumerate(values, start=1):
        mean += (value - mean) / count
    return mean


def _ema_step(prev: float, value: float, period: int) -> float:
    alpha = 2.0 / (period + 1.0)
    return prev + alpha * (value - prev)


def sma(values: Sequence[float], period: int) -> Optional[float]:
    """Mean of the trailing `period` values, None until that many exist."""
    if period < 1 or len(values) < period:
        return None
    return _mean(values[-period:])


def ema_series(values: Sequence[float], period: int) -> List[float]:
    """EMA seeded with the SMA of the first `period` values.

    The first element lines up with values[period - 1].
    """
    if period < 1 or len(values) < period:
        return []
    out = [_mean(values[:period])]
    for value in values[period:]:
        out.append(_ema_step(out[-1], value, period))
    return out


def rsi(values: Sequence[float], period: int = 14) -> Optional[float]:
    """Wilder RSI of the last value.

    Needs `period` price changes (period + 1 closes). A flat series has no
    gains and no losses, which is reported as unavailable instead of 0/0.
    """
    if period < 1 or len(values) < period + 1:
        return None

    changes = [values[i] - values[i - 1] for i in range(1, len(values))]
    gains = [max(c, 0.0) for c in changes]
    losses = [max(-c, 0.0) for c in changes]

    avg_gain = _mean(gains[:period])
    avg_loss = _mean(losses[:period])
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_gain == 0.0 and avg_loss == 0.0:
        return None
    if avg_loss == 0.0:
        return 100.0

    rs = avg_gain / avg_loss
    value = 100.0 - (100.0 / (1.0 + rs))
    return min(100.0, max(0.0, value))


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """Latest (macd, signal, histogram), all None until slow + signal closes exist."""
    if len(values) < slow_period + signal_period:
        return None, None, None

    fast = ema_series(values, fast_period)
    slow = ema_series(values, slow_period)
    # align fast EMA on the slow EMA's first value
    offset = slow_period - fast_period
    macd_line = [f - s for f, s in zip(fast[offset:], slow)]

    signal = ema_series(macd_line, signal_period)
    if not signal:
        return None, None, None

    macd_value = macd_line[-1]
    signal_value = signal[-1]
    return macd_value, signal_value, macd_value - signal_value


@dataclass
class IndicatorEngine:
    rsi_period: int = 14
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    macd_signal_period: int = 9
    sma_short_period: int = 50
    sma_long_period: int = 200

    def _validate_periods(self) -> None:
        if self.rsi_period <= 1:
            raise ValueError("rsi_period must be > 1")
        if self.macd_fast_period <= 1:
            raise ValueError("macd_fast_period must be > 1")
        if self.macd_slow_period <= self.macd_fast_period:
            raise ValueError("macd_slow_period must be greater than macd_fast_period")
        if self.macd_signal_period <= 1:
            raise ValueError("macd_signal_period must be > 1")
        if self.sma_short_period <= 1 or self.sma_long_period <= 1:
            raise ValueError("sma periods must be > 1")

    def warmup(self) -> int:
        """Closes needed before every indicator is available."""
        return max(
            self.rsi_period + 1,
            self.macd_slow_period + self.macd_signal_period,
            self.sma_short_period,
            self.sma_long_period,
        )

    def compute(self, closes: Sequence[float]) -> IndicatorSnapshot:
        self._validate_periods()
        values = [float(c) for c in closes]
        if not values:
            return IndicatorSnapshot.unavailable()

        macd_value, signal_value, histogram = macd(
            values,
            fast_period=self.macd_fast_period,
            slow_period=self.macd_slow_period,
            signal_period=self.macd_signal_period,
        )

        return IndicatorSnapshot(
            rsi=rsi(values, self.rsi_period),
            macd=macd_value,
            macd_signal=signal_value,
            macd_histogram=histogram,
            sma50=sma(values, self.sma_short_period),
            sma200=sma(values, self.sma_long_period),
        )
