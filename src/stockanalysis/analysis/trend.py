"""Trend, regime and breakout classification over price bars."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd

from stockanalysis.data.base import bars_to_frame
from stockanalysis.domain.models import PriceBar, TrendType

logger = logging.getLogger("stockanalysis.analysis.trend")

TREND_MIN_BARS = 20
BREAKOUT_MIN_BARS = 10

STRONG_MOMENTUM = 0.02
FLAT_MOMENTUM = 0.01
LOW_VOLATILITY = 0.02

VOLUME_SPIKE_RATIO = 1.5
PRICE_BREAKOUT_CHANGE = 0.02
RANGE_EXPANSION_RATIO = 1.3


class TrendDetector:
    """Stateless classifier re-evaluated on every call."""

    def detect_trend(self, bars: Sequence[PriceBar] | None) -> TrendType:
        """Classify the series using SMA position, momentum and volatility.

        Fewer than 20 bars defaults to SIDEWAYS.
        """
        closes = bars_to_frame(bars)["close"]
        if len(closes) < TREND_MIN_BARS:
            logger.debug("Insufficient data for trend detection: %s bars", len(closes))
            return TrendType.SIDEWAYS

        recent = closes.iloc[-TREND_MIN_BARS:]

        above_sma20 = _is_above_sma(closes, 20)
        above_sma50 = _is_above_sma(closes, 50)
        momentum = _momentum(recent)
        volatility = _volatility(recent)

        if above_sma20 and above_sma50 and momentum > STRONG_MOMENTUM:
            return TrendType.UPTREND
        if not above_sma20 and not above_sma50 and momentum < -STRONG_MOMENTUM:
            return TrendType.DOWNTREND
        if abs(momentum) < FLAT_MOMENTUM and volatility < LOW_VOLATILITY:
            return TrendType.SIDEWAYS
        if momentum > 0:
            return TrendType.UPTREND
        return TrendType.DOWNTREND

    def classify_many(
        self,
        series_by_symbol: Mapping[str, Sequence[PriceBar]] | None,
    ) -> dict[str, TrendType]:
        """Classify each symbol independently."""
        if not series_by_symbol:
            return {}
        return {
            symbol: self.detect_trend(bars) for symbol, bars in sorted(series_by_symbol.items())
        }

    def detect_market_regime(
        self,
        series_by_symbol: Mapping[str, Sequence[PriceBar]] | None,
    ) -> TrendType:
        """Return the trend held by a strict plurality of symbols.

        A tie for first place resolves to SIDEWAYS.
        """
        trends = self.classify_many(series_by_symbol)
        if not trends:
            logger.debug("No series provided for market regime detection")
            return TrendType.SIDEWAYS

        counts = {trend: 0 for trend in TrendType}
        for trend in trends.values():
            counts[trend] += 1
        up = counts[TrendType.UPTREND]
        down = counts[TrendType.DOWNTREND]
        sideways = counts[TrendType.SIDEWAYS]

        if up > down and up > sideways:
            return TrendType.UPTREND
        if down > up and down > sideways:
            return TrendType.DOWNTREND
        return TrendType.SIDEWAYS

    def detect_breakout(self, bars: Sequence[PriceBar] | None) -> bool:
        """Volume spike, price move and range expansion on the latest bar, all at once."""
        frame = bars_to_frame(bars)
        if len(frame) < BREAKOUT_MIN_BARS:
            logger.debug("Insufficient data for breakout detection")
            return False

        current = frame.iloc[-1]
        previous = frame.iloc[-2]

        average_volume = float(frame["volume"].iloc[-BREAKOUT_MIN_BARS:-1].mean())
        volume_spike = float(current["volume"]) > average_volume * VOLUME_SPIKE_RATIO

        previous_close = float(previous["close"])
        if previous_close == 0:
            return False
        price_change = (float(current["close"]) - previous_close) / previous_close
        price_breakout = abs(price_change) > PRICE_BREAKOUT_CHANGE

        ranges = frame["high"] - frame["low"]
        today_range = float(ranges.iloc[-1])
        average_range = float(ranges.iloc[-BREAKOUT_MIN_BARS:].mean())
        range_expansion = today_range > average_range * RANGE_EXPANSION_RATIO

        return volume_spike and price_breakout and range_expansion


def _is_above_sma(closes: pd.Series, period: int) -> bool:
    if len(closes) < period:
        return False
    average = float(closes.iloc[-period:].mean())
    return float(closes.iloc[-1]) > average


def _momentum(closes: pd.Series) -> float:
    if len(closes) < 2:
        return 0.0
    start = float(closes.iloc[0])
    if start == 0:
        return 0.0
    return (float(closes.iloc[-1]) - start) / start


def _volatility(closes: pd.Series) -> float:
    if len(closes) < 2:
        return 0.0
    values = closes.to_numpy(dtype=float)
    mean = float(np.mean(values))
    if mean == 0:
        return 0.0
    return float(np.std(values)) / mean
