"""Domain models and event types."""

from .events import RunEvent
from .models import (
    AnalysisRecord,
    BollingerPoint,
    IndicatorReading,
    MACDPoint,
    PassReport,
    PriceBar,
    PriceSnapshot,
    Recommendation,
    RecommendationResult,
    ScheduledFailure,
    TechnicalIndicators,
    TrendType,
    latest_bollinger,
    latest_macd,
    round_confidence,
)

__all__ = [
    "AnalysisRecord",
    "BollingerPoint",
    "IndicatorReading",
    "MACDPoint",
    "PassReport",
    "PriceBar",
    "PriceSnapshot",
    "Recommendation",
    "RecommendationResult",
    "RunEvent",
    "ScheduledFailure",
    "TechnicalIndicators",
    "TrendType",
    "latest_bollinger",
    "latest_macd",
    "round_confidence",
]
