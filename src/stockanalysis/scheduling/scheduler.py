"""Queue-backed fan-out of analysis jobs over tracked symbols."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any

from stockanalysis.analysis.orchestrator import AnalysisOrchestrator
from stockanalysis.domain.models import AnalysisRecord, PassReport, ScheduledFailure

logger = logging.getLogger("stockanalysis.scheduling")

RecordCallback = Callable[[AnalysisRecord], None]
FailureCallback = Callable[[ScheduledFailure], None]


def is_trading_day(day: date) -> bool:
    """Weekdays are trading days; exchange holidays are not modelled."""
    return day.weekday() < 5


def dedupe_symbols(symbols: Iterable[str]) -> list[str]:
    """Normalize and remove duplicate symbols while preserving order."""
    deduped: list[str] = []
    seen: set[str] = set()
    for symbol in symbols:
        normalized = symbol.strip().upper()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(normalized)
    return deduped


class AnalysisScheduler:
    """Drain one job per symbol with bounded concurrency and per-worker pacing."""

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        max_workers: int = 2,
        job_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if job_delay_seconds < 0:
            raise ValueError("job_delay_seconds must not be negative")
        self.orchestrator = orchestrator
        self.max_workers = max_workers
        self.job_delay_seconds = job_delay_seconds
        self._sleep = sleep

    def run_pass(
        self,
        symbols: Iterable[str],
        today: date | None = None,
        skip_non_trading_days: bool = True,
        on_record: RecordCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> PassReport:
        """Analyze every symbol once; failures are collected, not raised."""
        report = PassReport()
        current_day = today or date.today()
        if skip_non_trading_days and not is_trading_day(current_day):
            logger.info("%s is not a trading day. Skipping analysis pass.", current_day)
            report.skipped = True
            return report

        jobs: queue.Queue[str] = queue.Queue()
        for symbol in dedupe_symbols(symbols):
            jobs.put(symbol)
        total = jobs.qsize()
        if total == 0:
            logger.warning("No symbols queued for analysis")
            return report

        lock = threading.Lock()
        worker_count = min(self.max_workers, total)
        logger.info("Queued %s symbols for analysis across %s workers", total, worker_count)

        def worker() -> None:
            processed = 0
            while True:
                try:
                    symbol = jobs.get_nowait()
                except queue.Empty:
                    return
                if processed and self.job_delay_seconds:
                    self._sleep(self.job_delay_seconds)
                processed += 1
                try:
                    record = self.orchestrator.generate_analysis(symbol)
                except Exception as exc:
                    failure = ScheduledFailure(symbol=symbol, message=str(exc))
                    with lock:
                        report.failures.append(failure)
                        _notify(on_failure, failure, symbol)
                else:
                    with lock:
                        report.records.append(record)
                        _notify(on_record, record, symbol)
                finally:
                    jobs.task_done()

        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            futures = [executor.submit(worker) for _ in range(worker_count)]
            for future in futures:
                future.result()

        logger.info(
            "Analysis pass finished: %s completed, %s failed",
            len(report.records),
            len(report.failures),
        )
        return report


def _notify(callback: Callable[[Any], None] | None, item: Any, symbol: str) -> None:
    # a failing callback is logged and the pass keeps draining
    if callback is None:
        return
    try:
        callback(item)
    except Exception:
        logger.exception("Result callback failed for %s", symbol)
