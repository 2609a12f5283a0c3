from __future__ import annotations

import threading
from datetime import UTC, date, datetime

import pytest

from stockanalysis.domain.models import (
    AnalysisRecord,
    Recommendation,
    ScheduledFailure,
    TrendType,
)
from stockanalysis.errors import AnalysisGenerationFailed, DataProviderError
from stockanalysis.scheduling import AnalysisScheduler, dedupe_symbols, is_trading_day

MONDAY = date(2024, 6, 3)
SATURDAY = date(2024, 6, 8)


class FakeOrchestrator:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def generate_analysis(self, symbol: str) -> AnalysisRecord:
        with self._lock:
            self.calls.append(symbol)
        if symbol in self.failing:
            raise AnalysisGenerationFailed(symbol, DataProviderError("no data"))
        return AnalysisRecord(
            symbol=symbol,
            trend=TrendType.SIDEWAYS,
            recommendation=Recommendation.HOLD,
            confidence_score=0.5,
            rationale="HOLD",
            timestamp=datetime(2024, 6, 3, tzinfo=UTC),
        )


def test_trading_days_are_weekdays() -> None:
    assert is_trading_day(MONDAY)
    assert is_trading_day(date(2024, 6, 7))
    assert not is_trading_day(SATURDAY)
    assert not is_trading_day(date(2024, 6, 9))


def test_dedupe_symbols_normalizes_and_keeps_order() -> None:
    assert dedupe_symbols(["aapl", " MSFT ", "AAPL", "", "msft", "ibm"]) == ["AAPL", "MSFT", "IBM"]


def test_run_pass_analyzes_each_symbol_once() -> None:
    orchestrator = FakeOrchestrator()
    scheduler = AnalysisScheduler(orchestrator, max_workers=3, sleep=lambda _seconds: None)

    report = scheduler.run_pass(["AAPL", "MSFT", "aapl", "IBM"], today=MONDAY)

    assert sorted(orchestrator.calls) == ["AAPL", "IBM", "MSFT"]
    assert sorted(record.symbol for record in report.records) == ["AAPL", "IBM", "MSFT"]
    assert report.failures == []
    assert report.ok
    assert not report.skipped


def test_run_pass_collects_failures_without_stopping() -> None:
    orchestrator = FakeOrchestrator(failing={"MSFT"})
    scheduler = AnalysisScheduler(orchestrator, max_workers=2, sleep=lambda _seconds: None)
    seen_records: list[AnalysisRecord] = []
    seen_failures: list[ScheduledFailure] = []

    report = scheduler.run_pass(
        ["AAPL", "MSFT", "IBM"],
        today=MONDAY,
        on_record=seen_records.append,
        on_failure=seen_failures.append,
    )

    assert sorted(record.symbol for record in report.records) == ["AAPL", "IBM"]
    assert [failure.symbol for failure in report.failures] == ["MSFT"]
    assert "Analysis generation failed for MSFT" in report.failures[0].message
    assert not report.ok
    assert len(seen_records) == 2
    assert seen_failures == report.failures


def test_run_pass_skips_non_trading_days() -> None:
    orchestrator = FakeOrchestrator()
    scheduler = AnalysisScheduler(orchestrator, sleep=lambda _seconds: None)

    report = scheduler.run_pass(["AAPL"], today=SATURDAY)

    assert report.skipped
    assert orchestrator.calls == []


def test_run_pass_can_ignore_calendar() -> None:
    orchestrator = FakeOrchestrator()
    scheduler = AnalysisScheduler(orchestrator, sleep=lambda _seconds: None)

    report = scheduler.run_pass(["AAPL"], today=SATURDAY, skip_non_trading_days=False)

    assert not report.skipped
    assert orchestrator.calls == ["AAPL"]


def test_single_worker_paces_between_jobs() -> None:
    delays: list[float] = []
    orchestrator = FakeOrchestrator()
    scheduler = AnalysisScheduler(
        orchestrator,
        max_workers=1,
        job_delay_seconds=0.5,
        sleep=delays.append,
    )

    scheduler.run_pass(["AAPL", "MSFT", "IBM"], today=MONDAY)

    assert orchestrator.calls == ["AAPL", "MSFT", "IBM"]
    assert delays == [0.5, 0.5]


def test_empty_symbol_list_produces_empty_report() -> None:
    report = AnalysisScheduler(FakeOrchestrator()).run_pass([], today=MONDAY)

    assert report.records == []
    assert report.failures == []


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"max_workers": 0}, "max_workers must be positive"),
        ({"job_delay_seconds": -1.0}, "job_delay_seconds must not be negative"),
    ],
)
def test_scheduler_rejects_invalid_arguments(kwargs: dict[str, float], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        AnalysisScheduler(FakeOrchestrator(), **kwargs)


def test_failing_callback_does_not_stop_the_pass() -> None:
    orchestrator = FakeOrchestrator(failing={"MSFT"})
    scheduler = AnalysisScheduler(orchestrator, max_workers=1, sleep=lambda _seconds: None)

    def broken_sink(_item: object) -> None:
        raise OSError("disk full")

    report = scheduler.run_pass(
        ["AAPL", "MSFT", "IBM"],
        today=MONDAY,
        on_record=broken_sink,
        on_failure=broken_sink,
    )

    assert orchestrator.calls == ["AAPL", "MSFT", "IBM"]
    assert [record.symbol for record in report.records] == ["AAPL", "IBM"]
    assert [failure.symbol for failure in report.failures] == ["MSFT"]
