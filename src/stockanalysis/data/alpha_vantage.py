"""Alpha Vantage HTTP client for daily bars and quotes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import requests

from stockanalysis.data.base import OHLCV_COLUMNS, frame_to_bars
from stockanalysis.domain.models import PriceBar, PriceSnapshot
from stockanalysis.errors import DataProviderError
from stockanalysis.ratelimit import RateLimiter

DAILY_SERIES_KEYS = ("Time Series (Daily)", "Time Series (Daily Adjusted)")
RATE_LIMIT_KEYS = ("Note", "Information")


@dataclass(frozen=True)
class DailySeriesResponse:
    """Typed view of a TIME_SERIES_DAILY payload."""

    symbol: str
    frame: pd.DataFrame

    @classmethod
    def from_payload(cls, symbol: str, payload: dict[str, Any]) -> DailySeriesResponse:
        series_key = next((key for key in DAILY_SERIES_KEYS if key in payload), None)
        if series_key is None:
            raise DataProviderError(
                f"Alpha Vantage response missing daily time series for symbol {symbol}."
            )
        series = payload[series_key]
        if not isinstance(series, dict) or not series:
            raise DataProviderError(f"Alpha Vantage returned no daily bars for {symbol}.")

        frame = pd.DataFrame.from_dict(series, orient="index")
        frame.index = pd.to_datetime(frame.index, utc=False)
        frame = frame.sort_index()

        # Adjusted and non-adjusted daily endpoints use different volume keys.
        volume_col = "6. volume" if "6. volume" in frame.columns else "5. volume"
        rename_map = {
            "1. open": "open",
            "2. high": "high",
            "3. low": "low",
            "4. close": "close",
            volume_col: "volume",
        }
        frame = frame.rename(columns=rename_map)
        missing_cols = [col for col in OHLCV_COLUMNS if col not in frame.columns]
        if missing_cols:
            raise DataProviderError(f"Data for {symbol} missing required columns: {missing_cols}")

        frame = frame[OHLCV_COLUMNS].apply(pd.to_numeric, errors="coerce").dropna()
        return cls(symbol=symbol, frame=frame)

    def to_bars(self) -> list[PriceBar]:
        return frame_to_bars(self.frame)


@dataclass(frozen=True)
class GlobalQuoteResponse:
    """Typed view of a GLOBAL_QUOTE payload."""

    symbol: str
    price: float
    previous_close: float
    volume: int
    change_percent: float
    open: float | None = None
    high: float | None = None
    low: float | None = None

    @classmethod
    def from_payload(cls, symbol: str, payload: dict[str, Any]) -> GlobalQuoteResponse:
        quote = payload.get("Global Quote")
        if not isinstance(quote, dict) or not quote:
            raise DataProviderError(f"Failed to get quote data for {symbol}")
        try:
            return cls(
                symbol=str(quote.get("01. symbol", symbol)).upper(),
                price=float(quote["05. price"]),
                previous_close=float(quote["08. previous close"]),
                volume=int(float(quote.get("06. volume", 0))),
                change_percent=float(str(quote["10. change percent"]).replace("%", "")),
                open=_optional_float(quote.get("02. open")),
                high=_optional_float(quote.get("03. high")),
                low=_optional_float(quote.get("04. low")),
            )
        except (KeyError, ValueError) as exc:
            raise DataProviderError(f"Malformed quote data for {symbol}: {exc}") from exc

    def to_snapshot(self) -> PriceSnapshot:
        return PriceSnapshot(
            symbol=self.symbol,
            current_price=self.price,
            previous_close=self.previous_close,
            day_change_percent=self.change_percent,
        )


class AlphaVantageClient:
    """Alpha Vantage client with shared rate limiting and basic retry handling."""

    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimiter,
        base_url: str = BASE_URL,
        timeout: int = 15,
        max_retries: int = 3,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not api_key:
            raise DataProviderError("Alpha Vantage API key is required")
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()
        self._sleep = sleep
        self.logger = logging.getLogger("stockanalysis.data.alpha_vantage")

    def get_bars(self, symbol: str) -> list[PriceBar]:
        """Fetch compact daily history as ascending bars."""
        payload = self._request_with_retry(
            {
                "function": "TIME_SERIES_DAILY",
                "symbol": symbol.upper(),
                "outputsize": "compact",
            }
        )
        bars = DailySeriesResponse.from_payload(symbol, payload).to_bars()
        if not bars:
            raise DataProviderError(f"Alpha Vantage returned no valid bars for {symbol}")
        return bars

    def get_quote(self, symbol: str) -> PriceSnapshot:
        payload = self._request_with_retry({"function": "GLOBAL_QUOTE", "symbol": symbol.upper()})
        return GlobalQuoteResponse.from_payload(symbol, payload).to_snapshot()

    def _request_with_retry(self, params: dict[str, str]) -> dict[str, Any]:
        """Perform GET request with simple backoff on rate-limit/transient failures."""
        query = {**params, "apikey": self.api_key}
        for attempt in range(1, self.max_retries + 1):
            self.rate_limiter.acquire()
            try:
                response = self.session.get(self.base_url, params=query, timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as exc:
                if attempt == self.max_retries:
                    raise DataProviderError(
                        f"Failed to fetch data from Alpha Vantage: {exc}"
                    ) from exc
                sleep_seconds = attempt * 2
                self.logger.warning(
                    "Alpha Vantage request failed (attempt %s/%s). Retrying in %ss.",
                    attempt,
                    self.max_retries,
                    sleep_seconds,
                )
                self._sleep(sleep_seconds)
                continue

            if not isinstance(payload, dict):
                raise DataProviderError("Alpha Vantage returned a non-object payload")

            if any(key in payload for key in RATE_LIMIT_KEYS):
                if attempt == self.max_retries:
                    raise DataProviderError(
                        "Alpha Vantage rate limit reached. Try again in a minute."
                    )
                sleep_seconds = attempt * 15
                self.logger.warning(
                    "Alpha Vantage rate limit hit (attempt %s/%s). Waiting %ss.",
                    attempt,
                    self.max_retries,
                    sleep_seconds,
                )
                self._sleep(sleep_seconds)
                continue

            if "Error Message" in payload:
                raise DataProviderError(
                    f"Alpha Vantage returned an error: {payload['Error Message']}"
                )

            return payload

        raise DataProviderError("Exhausted retries for Alpha Vantage request.")


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None
