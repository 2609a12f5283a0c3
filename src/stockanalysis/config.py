"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

DATA_SOURCES = {"csv", "alpha_vantage", "yfinance"}
DEFAULT_SYMBOLS = ["SPY"]


def parse_bool(value: str | None, default: bool) -> bool:
    """Parse truthy environment strings."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_symbols(value: str | None, default: list[str] | None = None) -> list[str]:
    """Parse comma-separated symbols, upper-cased and deduplicated."""
    fallback = default or DEFAULT_SYMBOLS
    if not value:
        return list(fallback)
    symbols: list[str] = []
    for item in value.split(","):
        symbol = item.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return symbols or list(fallback)


def parse_company_names(value: str | None) -> dict[str, str]:
    """Parse ``AAPL=Apple Inc.,MSFT=Microsoft`` style mappings."""
    names: dict[str, str] = {}
    if not value:
        return names
    for item in value.split(","):
        symbol, separator, name = item.partition("=")
        if not separator or not symbol.strip() or not name.strip():
            continue
        names[symbol.strip().upper()] = name.strip()
    return names


def normalize_data_source(value: str | None, default: str = "csv") -> str:
    """Normalize data source aliases."""
    mapping = {
        "csv": "csv",
        "alpha_vantage": "alpha_vantage",
        "alphavantage": "alpha_vantage",
        "alpha-vantage": "alpha_vantage",
        "yfinance": "yfinance",
        "yahoo": "yfinance",
    }
    if value is None or not value.strip():
        return default
    candidate = value.strip().lower()
    return mapping.get(candidate, candidate)


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    symbols: list[str] = field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    data_source: str = "csv"
    historical_data_dir: str = "historical_data"
    events_dir: str = "runs"
    log_level: str = "INFO"
    timeframe: str = "1Day"
    company_names: dict[str, str] = field(default_factory=dict)
    alpha_vantage_api_key: str = ""
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    alpha_vantage_requests_per_minute: int = 5
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4"
    llm_temperature: float = 0.5
    llm_max_tokens: int = 1000
    llm_requests_per_minute: int = 20
    request_timeout_seconds: int = 30
    max_retries: int = 3
    max_workers: int = 2
    job_delay_seconds: float = 0.5
    skip_non_trading_days: bool = True

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        raw = cls(
            symbols=parse_symbols(os.getenv("SYMBOLS")),
            data_source=normalize_data_source(os.getenv("DATA_SOURCE")),
            historical_data_dir=str(os.getenv("HISTORICAL_DATA_DIR", "historical_data")).strip(),
            events_dir=str(os.getenv("EVENTS_DIR", "runs")).strip(),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
            timeframe=str(os.getenv("TIMEFRAME", "1Day")).strip(),
            company_names=parse_company_names(os.getenv("COMPANY_NAMES")),
            alpha_vantage_api_key=str(os.getenv("ALPHA_VANTAGE_API_KEY", "")).strip(),
            alpha_vantage_base_url=str(
                os.getenv("ALPHA_VANTAGE_BASE_URL", "https://www.alphavantage.co/query")
            ).strip(),
            alpha_vantage_requests_per_minute=int(
                os.getenv("ALPHA_VANTAGE_REQUESTS_PER_MINUTE", "5")
            ),
            llm_api_key=str(os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", "")).strip(),
            llm_base_url=str(os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")).strip(),
            llm_model=str(os.getenv("LLM_MODEL", "gpt-4")).strip(),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.5")),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1000")),
            llm_requests_per_minute=int(os.getenv("LLM_REQUESTS_PER_MINUTE", "20")),
            request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            max_workers=int(os.getenv("MAX_WORKERS", "2")),
            job_delay_seconds=float(os.getenv("JOB_DELAY_SECONDS", "0.5")),
            skip_non_trading_days=parse_bool(os.getenv("SKIP_NON_TRADING_DAYS"), True),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        overrides = dict(kwargs)
        data_source = overrides.get("data_source")
        if isinstance(data_source, str):
            overrides["data_source"] = normalize_data_source(data_source, default=self.data_source)
        updated = replace(self, **overrides)
        return updated.validate()

    def validate(self) -> Self:
        """Validate settings fields."""
        if not self.symbols:
            raise ValueError("symbols must not be empty")
        if self.data_source not in DATA_SOURCES:
            supported = ", ".join(sorted(DATA_SOURCES))
            raise ValueError(f"data_source must be one of {supported}")
        if self.alpha_vantage_requests_per_minute <= 0:
            raise ValueError("alpha_vantage_requests_per_minute must be positive")
        if self.llm_requests_per_minute <= 0:
            raise ValueError("llm_requests_per_minute must be positive")
        if not 0.0 <= self.llm_temperature <= 2.0:
            raise ValueError("llm_temperature must be between 0 and 2")
        if self.llm_max_tokens <= 0:
            raise ValueError("llm_max_tokens must be positive")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.max_retries <= 0:
            raise ValueError("max_retries must be positive")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if self.job_delay_seconds < 0:
            raise ValueError("job_delay_seconds must not be negative")
        return self
