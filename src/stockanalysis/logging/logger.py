"""Logger setup and concise human-readable run lines."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from stockanalysis.domain.models import AnalysisRecord, PassReport, TrendType


def setup_logger(log_level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    Logs are written to console, plus an optional file if `log_file` is set.
    Module loggers under ``stockanalysis.*`` propagate into this one.
    """
    logger = logging.getLogger("stockanalysis")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class HumanLogger:
    """Run progress logger with fixed line types."""

    def __init__(self, level: str = "INFO") -> None:
        self._logger = logging.getLogger("stockanalysis.run")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    def run_started(self, run_id: str, data_source: str, symbols: list[str]) -> None:
        self._logger.info(
            "run | %s | source %s | symbols %s",
            self._short_id(run_id),
            data_source,
            ",".join(symbols),
        )

    def analysis(self, record: AnalysisRecord) -> None:
        self._logger.info(
            "analysis | %s | trend %s | %s | confidence %.2f",
            record.symbol,
            record.trend.value.lower(),
            record.recommendation.value,
            record.confidence_score,
        )

    def trend(self, symbol: str, trend: TrendType) -> None:
        self._logger.info("trend | %s | %s", symbol, trend.value.lower())

    def failed(self, symbol: str, reason: str) -> None:
        self._logger.warning("failed | %s | %s", symbol, reason)

    def regime(self, regime: TrendType, trends: Mapping[str, TrendType]) -> None:
        counts = {trend: 0 for trend in TrendType}
        for trend in trends.values():
            counts[trend] += 1
        self._logger.info(
            "regime | %s | up %s | down %s | sideways %s",
            regime.value.lower(),
            counts[TrendType.UPTREND],
            counts[TrendType.DOWNTREND],
            counts[TrendType.SIDEWAYS],
        )

    def breakout(self, symbols: Iterable[str]) -> None:
        for symbol in symbols:
            self._logger.info("breakout | %s", symbol)

    def pass_summary(self, report: PassReport) -> None:
        if report.skipped:
            self._logger.info("pass | skipped | non-trading day")
            return
        self._logger.info(
            "pass | completed %s | failed %s",
            len(report.records),
            len(report.failures),
        )

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

    @staticmethod
    def _short_id(value: str | None, head: int = 10) -> str:
        if not value:
            return ""
        return str(value)[:head]
