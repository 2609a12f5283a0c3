"""Technical indicators computed over ascending price bars.

Every function sorts its input by date, then returns one value per bar from
the first bar where the trailing window is complete. A series needs strictly
more bars than the requested period; shorter, empty or missing input and
non-positive periods produce an empty result instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from stockanalysis.analysis.trend import TrendDetector
from stockanalysis.data.base import bars_to_frame
from stockanalysis.domain.models import PriceBar, TechnicalIndicators

logger = logging.getLogger("stockanalysis.indicators")

RSI_EPSILON = 0.001
MACD_COLUMNS = ["macd", "signal", "histogram"]
BOLLINGER_COLUMNS = ["middle", "upper", "lower"]


def sma(bars: Sequence[PriceBar] | None, period: int) -> pd.Series:
    """Simple moving average of close."""
    name = f"SMA{period}"
    frame = _prepare(bars, period, name)
    if frame is None:
        return _empty_series(name)
    averages = frame["close"].rolling(window=period).mean()
    return averages.iloc[period - 1 :].rename(name)


def ema(bars: Sequence[PriceBar] | None, period: int) -> pd.Series:
    """Exponential moving average of close, seeded with the SMA of the first window."""
    name = f"EMA{period}"
    frame = _prepare(bars, period, name)
    if frame is None:
        return _empty_series(name)
    return _ema_of(frame["close"], period).rename(name)


def rsi(bars: Sequence[PriceBar] | None, period: int = 14) -> pd.Series:
    """Relative Strength Index with Wilder smoothing."""
    name = f"RSI{period}"
    frame = _prepare(bars, period, name)
    if frame is None:
        return _empty_series(name)

    delta = frame["close"].diff().iloc[1:]
    gains = delta.clip(lower=0.0).to_list()
    losses = (-delta).clip(lower=0.0).to_list()
    dates = frame.index

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    values = [_rsi_value(avg_gain, avg_loss)]
    for i in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        values.append(_rsi_value(avg_gain, avg_loss))
    return pd.Series(values, index=dates[period:], name=name, dtype=float)


def macd(
    bars: Sequence[PriceBar] | None,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> pd.DataFrame:
    """MACD line, signal line and histogram on dates shared by all three."""
    if fast_period <= 0 or slow_period <= 0 or signal_period <= 0:
        logger.debug(
            "MACD skipped: non-positive periods (%s, %s, %s)",
            fast_period,
            slow_period,
            signal_period,
        )
        return _empty_frame(MACD_COLUMNS)
    fast = ema(bars, fast_period)
    slow = ema(bars, slow_period)
    if fast.empty or slow.empty:
        return _empty_frame(MACD_COLUMNS)

    common = slow.index.intersection(fast.index, sort=False)
    line = (fast.loc[common] - slow.loc[common]).rename("macd")
    if len(line) <= signal_period:
        logger.debug(
            "MACD skipped: %s line values for signal period %s",
            len(line),
            signal_period,
        )
        return _empty_frame(MACD_COLUMNS)

    signal = _ema_of(line, signal_period)
    aligned = line.loc[signal.index]
    return pd.DataFrame(
        {
            "macd": aligned,
            "signal": signal,
            "histogram": aligned - signal,
        },
        index=signal.index,
    )


def bollinger_bands(
    bars: Sequence[PriceBar] | None,
    period: int = 20,
    num_std: float = 2.0,
) -> pd.DataFrame:
    """Middle, upper and lower bands using the population standard deviation."""
    if num_std <= 0:
        logger.debug("Bollinger Bands skipped: non-positive std multiplier %s", num_std)
        return _empty_frame(BOLLINGER_COLUMNS)
    frame = _prepare(bars, period, "Bollinger Bands")
    if frame is None:
        return _empty_frame(BOLLINGER_COLUMNS)

    window = frame["close"].rolling(window=period)
    middle = window.mean()
    deviation = window.std(ddof=0)
    bands = pd.DataFrame(
        {
            "middle": middle,
            "upper": middle + deviation * num_std,
            "lower": middle - deviation * num_std,
        },
        index=frame.index,
    )
    return bands.iloc[period - 1 :]


def vwap(bars: Sequence[PriceBar] | None, period: int = 20) -> pd.Series:
    """Volume weighted average of the typical price over a trailing window."""
    name = f"VWAP{period}"
    frame = _prepare(bars, period, name)
    if frame is None:
        return _empty_series(name)

    typical = (frame["high"] + frame["low"] + frame["close"]) / 3.0
    price_volume = (typical * frame["volume"]).rolling(window=period).sum()
    volume = frame["volume"].rolling(window=period).sum()
    values = price_volume / volume.clip(lower=1.0)
    return values.iloc[period - 1 :].rename(name)


def atr(bars: Sequence[PriceBar] | None, period: int = 14) -> pd.Series:
    """Average True Range with Wilder smoothing."""
    name = f"ATR{period}"
    frame = _prepare(bars, period, name)
    if frame is None:
        return _empty_series(name)

    previous_close = frame["close"].shift(1)
    true_range = pd.concat(
        [
            frame["high"] - frame["low"],
            (frame["high"] - previous_close).abs(),
            (frame["low"] - previous_close).abs(),
        ],
        axis=1,
    ).max(axis=1)
    ranges = true_range.to_list()

    current = sum(ranges[:period]) / period
    values = [current]
    for value in ranges[period:]:
        current = (current * (period - 1) + value) / period
        values.append(current)
    return pd.Series(values, index=frame.index[period - 1 :], name=name, dtype=float)


def calculate_all(bars: Sequence[PriceBar] | None) -> TechnicalIndicators | None:
    """Compute the standard indicator set plus the current trend."""
    if not bars:
        logger.debug("Cannot calculate indicators for empty or missing bars")
        return None
    trend = TrendDetector().detect_trend(bars) if len(bars) >= 20 else None
    return TechnicalIndicators(
        sma20=sma(bars, 20),
        sma50=sma(bars, 50),
        sma200=sma(bars, 200),
        ema12=ema(bars, 12),
        ema26=ema(bars, 26),
        rsi14=rsi(bars, 14),
        macd=macd(bars, 12, 26, 9),
        bollinger_bands=bollinger_bands(bars, 20, 2.0),
        vwap20=vwap(bars, 20),
        atr14=atr(bars, 14),
        current_trend=trend,
    )


def _prepare(
    bars: Sequence[PriceBar] | None,
    period: int,
    name: str,
) -> pd.DataFrame | None:
    frame = bars_to_frame(bars)
    size = len(frame)
    if size == 0 or period <= 0 or size <= period:
        logger.debug("%s skipped: %s bars for period %s", name, size, period)
        return None
    return frame


def _ema_of(values: pd.Series, period: int) -> pd.Series:
    if len(values) <= period:
        return pd.Series(dtype=float, index=pd.Index([], name="date"))
    multiplier = 2.0 / (period + 1)
    closes = values.to_list()
    current = sum(closes[:period]) / period
    averages = [current]
    for value in closes[period:]:
        current = (value - current) * multiplier + current
        averages.append(current)
    return pd.Series(averages, index=values.index[period - 1 :], dtype=float)


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    strength = avg_gain / max(avg_loss, RSI_EPSILON)
    return 100.0 - 100.0 / (1.0 + strength)


def _empty_series(name: str) -> pd.Series:
    return pd.Series(dtype=float, name=name, index=pd.Index([], name="date"))


def _empty_frame(columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame(columns=columns, index=pd.Index([], name="date"), dtype=float)
