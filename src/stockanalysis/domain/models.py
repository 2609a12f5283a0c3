"""Core analysis domain models."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any

import pandas as pd


class TrendType(StrEnum):
    """Coarse directional label for a price series."""

    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    SIDEWAYS = "SIDEWAYS"


class Recommendation(StrEnum):
    """Recommendation keywords extracted from advisory text."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class PriceBar:
    """One OHLCV observation."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


@dataclass(frozen=True)
class MACDPoint:
    """MACD line, signal line and histogram for one date."""

    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerPoint:
    """Bollinger band values for one date."""

    middle: float
    upper: float
    lower: float


@dataclass(frozen=True)
class PriceSnapshot:
    """Latest price view rendered into the advisory prompt."""

    symbol: str
    current_price: float
    previous_close: float
    day_change_percent: float

    @classmethod
    def from_bars(cls, symbol: str, bars: Sequence[PriceBar]) -> PriceSnapshot:
        """Derive the snapshot from the two most recent bars."""
        ordered = sorted(bars, key=lambda bar: bar.date)
        if len(ordered) < 2:
            raise ValueError(f"At least two bars are required to build a snapshot for {symbol}")
        current = ordered[-1].close
        previous = ordered[-2].close
        change = 0.0 if previous == 0 else (current - previous) / previous * 100.0
        return cls(
            symbol=symbol,
            current_price=current,
            previous_close=previous,
            day_change_percent=change,
        )


@dataclass(frozen=True)
class IndicatorReading:
    """Single indicator line passed to the prompt builder."""

    name: str
    value: float
    signal: float | None = None
    histogram: float | None = None


@dataclass(frozen=True)
class RecommendationResult:
    """Keyword and confidence derived from advisory text."""

    recommendation: Recommendation
    confidence_score: float


@dataclass(frozen=True)
class TechnicalIndicators:
    """Full indicator set computed for one series."""

    sma20: pd.Series
    sma50: pd.Series
    sma200: pd.Series
    ema12: pd.Series
    ema26: pd.Series
    rsi14: pd.Series
    macd: pd.DataFrame
    bollinger_bands: pd.DataFrame
    vwap20: pd.Series
    atr14: pd.Series
    current_trend: TrendType | None = None


@dataclass(frozen=True)
class AnalysisRecord:
    """Analysis result handed to the caller for persistence."""

    symbol: str
    trend: TrendType
    recommendation: Recommendation
    confidence_score: float
    rationale: str
    timestamp: datetime

    def to_record(self) -> dict[str, Any]:
        """Convert the analysis to a serializable dict."""
        return {
            "symbol": self.symbol,
            "trend": self.trend.value,
            "recommendation": self.recommendation.value,
            "confidence_score": self.confidence_score,
            "rationale": self.rationale,
            "timestamp": self.timestamp.isoformat(),
        }


def round_confidence(value: float) -> float:
    """Round a confidence score to two decimals, half up."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def latest_macd(frame: pd.DataFrame) -> MACDPoint | None:
    """Return the most recent MACD row, or None for an empty frame."""
    if frame.empty:
        return None
    row = frame.iloc[-1]
    return MACDPoint(
        macd=float(row["macd"]),
        signal=float(row["signal"]),
        histogram=float(row["histogram"]),
    )


def latest_bollinger(frame: pd.DataFrame) -> BollingerPoint | None:
    """Return the most recent Bollinger row, or None for an empty frame."""
    if frame.empty:
        return None
    row = frame.iloc[-1]
    return BollingerPoint(
        middle=float(row["middle"]),
        upper=float(row["upper"]),
        lower=float(row["lower"]),
    )


@dataclass(frozen=True)
class ScheduledFailure:
    """Failure captured for one symbol during a scheduler pass."""

    symbol: str
    message: str


@dataclass
class PassReport:
    """Outcome of one scheduled analysis pass."""

    records: list[AnalysisRecord] = field(default_factory=list)
    failures: list[ScheduledFailure] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures
