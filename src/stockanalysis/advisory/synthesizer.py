"""Prompt rendering and keyword scoring for advisory text."""

from __future__ import annotations

import math
from collections.abc import Sequence

from stockanalysis.domain.models import (
    IndicatorReading,
    PriceSnapshot,
    Recommendation,
    RecommendationResult,
    TrendType,
)

SYSTEM_PROMPT = (
    "You are a professional financial advisor specialized in stock market analysis. "
    "Provide concise, actionable advice based on the provided data. "
    "Your response should include a clear BUY, SELL, or HOLD recommendation, "
    "along with a brief rationale that a trader can understand quickly."
)

INSTRUCTIONS = (
    "1. A brief analysis of the current situation (2-3 sentences)",
    "2. A clear recommendation: BUY, SELL, or HOLD",
    "3. A brief rationale for your recommendation (2-3 sentences)",
    "4. One key risk factor to consider",
)

BASE_CONFIDENCE = 0.5
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95

# First matching rung wins within each ladder; the two ladders add up.
POSITIVE_LADDER: tuple[tuple[tuple[str, ...], float], ...] = (
    (("strongly", "definitely", "certainly", "highly"), 0.3),
    (("recommend", "suggest", "advise"), 0.2),
    (("consider", "might", "could"), 0.1),
)
NEGATIVE_LADDER: tuple[tuple[tuple[str, ...], float], ...] = (
    (("uncertain", "unclear", "risky", "doubt"), -0.2),
    (("caution", "careful", "wait"), -0.1),
)


def build_prompt(
    symbol: str,
    company_name: str | None,
    trend: TrendType,
    snapshot: PriceSnapshot,
    indicators: Sequence[IndicatorReading],
) -> str:
    """Render the advisory request: identity, prices, indicators, instructions."""
    name = company_name or symbol
    lines = [
        f"Please analyze {name} ({symbol}) which is currently showing "
        f"a {trend.value.lower()} trend. "
        f"Current price: ${snapshot.current_price:.2f}, "
        f"Previous close: ${snapshot.previous_close:.2f}, "
        f"Day change: {snapshot.day_change_percent:.2f}%.",
        "",
        "Technical indicators:",
    ]
    for reading in indicators:
        line = f"- {reading.name}: {_format_value(reading.value)}"
        if reading.name == "MACD" and reading.signal is not None:
            line += f", Signal: {_format_value(reading.signal)}"
            if reading.histogram is not None:
                line += f", Histogram: {_format_value(reading.histogram)}"
        lines.append(line)
    lines.append("")
    lines.append("Based on this information, please provide:")
    lines.extend(INSTRUCTIONS)
    return "\n".join(lines) + "\n"


def extract_recommendation(text: str | None) -> Recommendation:
    """Scan for BUY then SELL, case-insensitively; default to HOLD."""
    if not text:
        return Recommendation.HOLD
    upper = text.upper()
    if "BUY" in upper:
        return Recommendation.BUY
    if "SELL" in upper:
        return Recommendation.SELL
    return Recommendation.HOLD


def calculate_confidence(text: str | None) -> float:
    """Score hedging and conviction wording, clamped to [0.1, 0.95]."""
    if text is None:
        return BASE_CONFIDENCE
    lower = text.lower()
    confidence = BASE_CONFIDENCE + _ladder_adjustment(lower, POSITIVE_LADDER)
    confidence += _ladder_adjustment(lower, NEGATIVE_LADDER)
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))


def synthesize(text: str | None) -> RecommendationResult:
    """Combine keyword extraction and confidence scoring."""
    return RecommendationResult(
        recommendation=extract_recommendation(text),
        confidence_score=calculate_confidence(text),
    )


def _ladder_adjustment(
    text: str,
    ladder: tuple[tuple[tuple[str, ...], float], ...],
) -> float:
    for keywords, adjustment in ladder:
        if any(keyword in text for keyword in keywords):
            return adjustment
    return 0.0


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "n/a"
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text
