"""Compose indicators, trend and advisory scoring into one analysis per symbol."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime

from stockanalysis.advisory.chat_client import TextGenerator
from stockanalysis.advisory.synthesizer import build_prompt, synthesize
from stockanalysis.analysis.trend import TrendDetector
from stockanalysis.data.base import QuoteProvider, SeriesProvider
from stockanalysis.domain.models import (
    AnalysisRecord,
    IndicatorReading,
    PriceBar,
    PriceSnapshot,
    latest_macd,
    round_confidence,
)
from stockanalysis.errors import AnalysisGenerationFailed
from stockanalysis.indicators.engine import macd, rsi

logger = logging.getLogger("stockanalysis.analysis.orchestrator")

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9


class AnalysisOrchestrator:
    """Generate an AnalysisRecord for a symbol from its collaborators.

    Nothing is cached between calls: bars, indicators, trend and advisory text
    are fetched or recomputed on every invocation, and the record is returned
    to the caller rather than stored.
    """

    def __init__(
        self,
        series_provider: SeriesProvider,
        text_generator: TextGenerator,
        quote_provider: QuoteProvider | None = None,
        company_names: Mapping[str, str] | None = None,
        trend_detector: TrendDetector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.series_provider = series_provider
        self.text_generator = text_generator
        self.quote_provider = quote_provider
        self.company_names = dict(company_names or {})
        self.trend_detector = trend_detector or TrendDetector()
        self.clock = clock or (lambda: datetime.now(tz=UTC))

    def generate_analysis(self, symbol: str) -> AnalysisRecord:
        """Run the full pipeline; any collaborator failure aborts the whole call."""
        normalized = symbol.strip().upper()
        logger.debug("Generating analysis for %s", normalized)
        try:
            bars = self.series_provider.get_bars(normalized)
            snapshot = self._snapshot(normalized, bars)
            readings = self._indicator_readings(normalized, bars)
            trend = self.trend_detector.detect_trend(bars)
            prompt = build_prompt(
                symbol=normalized,
                company_name=self.company_names.get(normalized),
                trend=trend,
                snapshot=snapshot,
                indicators=readings,
            )
            advice = self.text_generator.generate(prompt)
        except Exception as exc:
            logger.error("Failed to generate analysis for %s: %s", normalized, exc)
            raise AnalysisGenerationFailed(normalized, exc) from exc

        result = synthesize(advice)
        return AnalysisRecord(
            symbol=normalized,
            trend=trend,
            recommendation=result.recommendation,
            confidence_score=round_confidence(result.confidence_score),
            rationale=advice,
            timestamp=self.clock(),
        )

    def _snapshot(self, symbol: str, bars: Sequence[PriceBar]) -> PriceSnapshot:
        if self.quote_provider is not None:
            return self.quote_provider.get_quote(symbol)
        return PriceSnapshot.from_bars(symbol, bars)

    def _indicator_readings(
        self,
        symbol: str,
        bars: Sequence[PriceBar],
    ) -> list[IndicatorReading]:
        readings: list[IndicatorReading] = []

        rsi_values = rsi(bars, RSI_PERIOD)
        if rsi_values.empty:
            logger.warning(
                "%s: insufficient data for RSI(%s), %s bars", symbol, RSI_PERIOD, len(bars)
            )
        else:
            readings.append(
                IndicatorReading(name=f"RSI ({RSI_PERIOD})", value=float(rsi_values.iloc[-1]))
            )

        point = latest_macd(macd(bars, MACD_FAST, MACD_SLOW, MACD_SIGNAL))
        if point is None:
            logger.warning(
                "%s: insufficient data for MACD(%s,%s,%s), %s bars",
                symbol,
                MACD_FAST,
                MACD_SLOW,
                MACD_SIGNAL,
                len(bars),
            )
        else:
            readings.append(
                IndicatorReading(
                    name="MACD",
                    value=point.macd,
                    signal=point.signal,
                    histogram=point.histogram,
                )
            )
        return readings
