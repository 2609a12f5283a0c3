from __future__ import annotations

import pytest

from stockanalysis.advisory.synthesizer import (
    build_prompt,
    calculate_confidence,
    extract_recommendation,
    synthesize,
)
from stockanalysis.domain.models import (
    IndicatorReading,
    PriceSnapshot,
    Recommendation,
    TrendType,
)


def _snapshot() -> PriceSnapshot:
    return PriceSnapshot(
        symbol="AAPL",
        current_price=187.456,
        previous_close=185.0,
        day_change_percent=1.3276,
    )


def test_build_prompt_renders_identity_prices_and_indicators() -> None:
    prompt = build_prompt(
        symbol="AAPL",
        company_name="Apple Inc.",
        trend=TrendType.UPTREND,
        snapshot=_snapshot(),
        indicators=[
            IndicatorReading(name="RSI (14)", value=61.25),
            IndicatorReading(name="MACD", value=1.5, signal=1.25, histogram=0.25),
        ],
    )

    lines = prompt.splitlines()
    assert lines[0] == (
        "Please analyze Apple Inc. (AAPL) which is currently showing a uptrend trend. "
        "Current price: $187.46, Previous close: $185.00, Day change: 1.33%."
    )
    assert lines[1] == ""
    assert lines[2] == "Technical indicators:"
    assert lines[3] == "- RSI (14): 61.25"
    assert lines[4] == "- MACD: 1.5, Signal: 1.25, Histogram: 0.25"
    assert "Based on this information, please provide:" in lines
    assert lines[-1] == "4. One key risk factor to consider"
    assert prompt.endswith("\n")


def test_build_prompt_falls_back_to_symbol_without_company_name() -> None:
    prompt = build_prompt(
        symbol="MSFT",
        company_name=None,
        trend=TrendType.SIDEWAYS,
        snapshot=_snapshot(),
        indicators=[],
    )

    assert prompt.startswith("Please analyze MSFT (MSFT) which is currently showing")
    assert "sideways trend" in prompt
    assert "- " not in prompt.split("Technical indicators:")[1].split("Based on")[0]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("We recommend to BUY now", Recommendation.BUY),
        ("do not buy, sell instead", Recommendation.BUY),
        ("Time to Sell.", Recommendation.SELL),
        ("Keep your position", Recommendation.HOLD),
        ("", Recommendation.HOLD),
        (None, Recommendation.HOLD),
    ],
)
def test_extract_recommendation_prefers_buy_then_sell(
    text: str | None, expected: Recommendation
) -> None:
    assert extract_recommendation(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        (None, 0.5),
        ("", 0.5),
        ("Plain statement.", 0.5),
        ("I strongly recommend this", 0.8),
        ("We suggest holding", 0.7),
        ("You might consider it", 0.6),
        ("Be careful here", 0.4),
        ("Outlook is unclear, so wait", 0.3),
        ("uncertain but strongly positioned", 0.6),
    ],
)
def test_calculate_confidence_applies_first_rung_of_each_ladder(
    text: str | None, expected: float
) -> None:
    assert calculate_confidence(text) == pytest.approx(expected)


def test_calculate_confidence_is_clamped() -> None:
    for text in ["", "strongly", "risky", "strongly uncertain caution"]:
        score = calculate_confidence(text)
        assert 0.1 <= score <= 0.95


def test_synthesize_combines_recommendation_and_confidence() -> None:
    result = synthesize("I would definitely recommend a BUY here, though there is some risk")

    assert result.recommendation == Recommendation.BUY
    assert result.confidence_score == pytest.approx(0.8)
