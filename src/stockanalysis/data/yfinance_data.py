"""Yahoo Finance price series provider."""

from __future__ import annotations

import re
from typing import Any

import pandas as pd

from stockanalysis.data.base import frame_to_bars
from stockanalysis.domain.models import PriceBar
from stockanalysis.errors import DataProviderError


class YFinanceDataProvider:
    """Fetch daily or weekly bars from Yahoo Finance via yfinance."""

    def __init__(self, timeframe: str = "1Day", period: str | None = None) -> None:
        self.interval = self._normalize_interval(timeframe)
        self.period = period or self._period_for_interval(self.interval)

    def get_bars(self, symbol: str) -> list[PriceBar]:
        try:
            import yfinance as yf
        except ImportError as exc:
            raise DataProviderError(
                "yfinance is required for DATA_SOURCE=yfinance. "
                "Install it with `pip install yfinance`."
            ) from exc

        ticker = symbol.strip().upper()
        try:
            history = yf.Ticker(ticker).history(
                period=self.period,
                interval=self.interval,
                auto_adjust=False,
                actions=False,
            )
        except Exception as exc:
            raise DataProviderError(f"yfinance request failed for {ticker}: {exc}") from exc

        bars = frame_to_bars(self._normalize_history(history, ticker))
        if not bars:
            raise DataProviderError(f"yfinance returned no rows for {ticker}")
        return bars

    @staticmethod
    def _normalize_history(history: Any, ticker: str) -> pd.DataFrame:
        if history is None:
            raise DataProviderError(f"yfinance returned no rows for {ticker}")
        frame = pd.DataFrame(history).copy()
        if frame.empty:
            raise DataProviderError(f"yfinance returned no rows for {ticker}")

        columns = {
            field: YFinanceDataProvider._pick_column(frame, field)
            for field in ("open", "high", "low", "close", "volume")
        }
        if columns["close"] is None:
            columns["close"] = YFinanceDataProvider._pick_column(frame, "adj_close")
        if any(columns[field] is None for field in ("open", "high", "low", "close")):
            raise DataProviderError(f"yfinance payload missing OHLC columns for {ticker}")

        normalized = pd.DataFrame(index=pd.to_datetime(frame.index, utc=True))
        for field in ("open", "high", "low", "close"):
            normalized[field] = pd.to_numeric(frame[columns[field]], errors="coerce").to_numpy()
        if columns["volume"] is None:
            normalized["volume"] = 0.0
        else:
            volume = pd.to_numeric(frame[columns["volume"]], errors="coerce").fillna(0.0)
            normalized["volume"] = volume.to_numpy()
        return normalized.sort_index().dropna(subset=["open", "high", "low", "close"])

    @staticmethod
    def _pick_column(frame: pd.DataFrame, field: str) -> Any | None:
        for column in frame.columns:
            key = YFinanceDataProvider._column_key(column)
            if key == field or key.startswith(f"{field}_"):
                return column
        return None

    @staticmethod
    def _column_key(value: Any) -> str:
        if isinstance(value, tuple):
            text = "_".join(str(part) for part in value if part is not None)
        else:
            text = str(value)
        return re.sub(r"[^a-zA-Z0-9]+", "_", text).strip("_").lower()

    @staticmethod
    def _normalize_interval(value: str) -> str:
        mapping = {
            "1d": "1d",
            "day": "1d",
            "1day": "1d",
            "1w": "1wk",
            "1wk": "1wk",
            "week": "1wk",
            "1week": "1wk",
        }
        return mapping.get(value.strip().lower(), "1d")

    @staticmethod
    def _period_for_interval(interval: str) -> str:
        if interval == "1wk":
            return "5y"
        return "1y"
