"""Runtime wiring for analysis passes and regime summaries."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from stockanalysis.advisory.chat_client import ChatCompletionClient, TextGenerator
from stockanalysis.analysis.orchestrator import AnalysisOrchestrator
from stockanalysis.analysis.trend import TrendDetector
from stockanalysis.config import Settings
from stockanalysis.data.alpha_vantage import AlphaVantageClient
from stockanalysis.data.base import QuoteProvider, SeriesProvider
from stockanalysis.data.csv_data import CsvDataProvider
from stockanalysis.data.yfinance_data import YFinanceDataProvider
from stockanalysis.domain.events import RunEvent
from stockanalysis.domain.models import AnalysisRecord, PriceBar, ScheduledFailure
from stockanalysis.errors import ConfigError, DataProviderError
from stockanalysis.logging.event_sink import JsonlEventSink, generate_plotly_report
from stockanalysis.logging.logger import HumanLogger, setup_logger
from stockanalysis.ratelimit import RateLimiter
from stockanalysis.scheduling.scheduler import AnalysisScheduler


def run(settings: Settings) -> int:
    """Run one analysis pass over the configured symbols."""
    setup_logger(settings.log_level)
    orchestrator = build_orchestrator(settings)
    scheduler = AnalysisScheduler(
        orchestrator,
        max_workers=settings.max_workers,
        job_delay_seconds=settings.job_delay_seconds,
    )

    run_id = uuid4().hex
    run_directory = Path(settings.events_dir) / run_id
    run_directory.mkdir(parents=True, exist_ok=True)
    events_path = run_directory / "events.jsonl"
    report_path = run_directory / "report.html"

    event_sink = JsonlEventSink(str(events_path))
    human_logger = HumanLogger(level=settings.log_level)

    def emit(event_type: str, payload: dict[str, object]) -> None:
        event_sink.emit(RunEvent(run_id=run_id, event_type=event_type, payload=payload))

    def on_record(record: AnalysisRecord) -> None:
        human_logger.analysis(record)
        emit("analysis", record.to_record())

    def on_failure(failure: ScheduledFailure) -> None:
        human_logger.failed(failure.symbol, failure.message)
        emit("analysis_failed", {"symbol": failure.symbol, "message": failure.message})

    human_logger.run_started(run_id, settings.data_source, settings.symbols)
    emit("run_started", {"symbols": settings.symbols, "data_source": settings.data_source})

    exit_code = 0
    try:
        report = scheduler.run_pass(
            settings.symbols,
            skip_non_trading_days=settings.skip_non_trading_days,
            on_record=on_record,
            on_failure=on_failure,
        )
        human_logger.pass_summary(report)
        emit(
            "run_finished",
            {
                "completed": len(report.records),
                "failed": len(report.failures),
                "skipped": report.skipped,
            },
        )
        if not report.ok:
            exit_code = 1
    except KeyboardInterrupt:
        exit_code = 0
    except Exception as exc:
        human_logger.error(str(exc))
        emit("error", {"message": str(exc)})
        exit_code = 1
    finally:
        generate_plotly_report(str(events_path), str(report_path))

    return exit_code


def show_regime(settings: Settings) -> int:
    """Classify every symbol offline and log trends, breakouts and the market regime."""
    setup_logger(settings.log_level)
    provider = build_series_provider(settings)
    human_logger = HumanLogger(level=settings.log_level)
    detector = TrendDetector()

    series_by_symbol: dict[str, list[PriceBar]] = {}
    for symbol in settings.symbols:
        try:
            series_by_symbol[symbol] = provider.get_bars(symbol)
        except DataProviderError as exc:
            human_logger.failed(symbol, str(exc))

    if not series_by_symbol:
        human_logger.error("No price series available for regime detection")
        return 1

    trends = detector.classify_many(series_by_symbol)
    for symbol, trend in trends.items():
        human_logger.trend(symbol, trend)
    breakouts = [symbol for symbol in trends if detector.detect_breakout(series_by_symbol[symbol])]
    human_logger.breakout(breakouts)
    human_logger.regime(detector.detect_market_regime(series_by_symbol), trends)
    return 0 if len(series_by_symbol) == len(settings.symbols) else 1


def build_orchestrator(settings: Settings) -> AnalysisOrchestrator:
    """Wire providers and the text generator into an orchestrator."""
    series_provider = build_series_provider(settings)
    return AnalysisOrchestrator(
        series_provider=series_provider,
        text_generator=build_text_generator(settings),
        quote_provider=build_quote_provider(settings, series_provider),
        company_names=settings.company_names,
    )


def build_series_provider(settings: Settings) -> SeriesProvider:
    """Select the price series provider from the data source."""
    if settings.data_source == "csv":
        return CsvDataProvider(data_dir=settings.historical_data_dir)
    if settings.data_source == "yfinance":
        return YFinanceDataProvider(timeframe=settings.timeframe)
    if not settings.alpha_vantage_api_key:
        raise ConfigError("ALPHA_VANTAGE_API_KEY is required for the alpha_vantage data source")
    return AlphaVantageClient(
        api_key=settings.alpha_vantage_api_key,
        rate_limiter=RateLimiter(settings.alpha_vantage_requests_per_minute),
        base_url=settings.alpha_vantage_base_url,
        timeout=settings.request_timeout_seconds,
        max_retries=settings.max_retries,
    )


def build_quote_provider(
    settings: Settings,
    series_provider: SeriesProvider,
) -> QuoteProvider | None:
    """Live quotes come from Alpha Vantage; other sources derive snapshots from bars."""
    if settings.data_source == "alpha_vantage" and isinstance(series_provider, AlphaVantageClient):
        return series_provider
    return None


def build_text_generator(settings: Settings) -> TextGenerator:
    """Build the chat completion client used for advisory text."""
    if not settings.llm_api_key:
        raise ConfigError("LLM_API_KEY (or OPENAI_API_KEY) is required to generate analyses")
    return ChatCompletionClient(
        api_key=settings.llm_api_key,
        rate_limiter=RateLimiter(settings.llm_requests_per_minute),
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.request_timeout_seconds,
        max_retries=settings.max_retries,
    )
