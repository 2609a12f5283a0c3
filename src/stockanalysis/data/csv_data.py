"""CSV-backed price series provider."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from stockanalysis.data.base import OHLCV_COLUMNS, frame_to_bars
from stockanalysis.domain.models import PriceBar
from stockanalysis.errors import DataProviderError


class CsvDataProvider:
    """Load OHLCV bars from local CSV files named after the symbol."""

    date_column_candidates = ("date", "datetime", "timestamp")

    def __init__(self, data_dir: str) -> None:
        self.data_dir = Path(data_dir)
        self._bars_cache: dict[str, list[PriceBar]] = {}

    def get_bars(self, symbol: str) -> list[PriceBar]:
        cached = self._bars_cache.get(symbol)
        if cached is not None:
            return list(cached)

        path = self._resolve_path(symbol)
        if path is None:
            raise DataProviderError(f"No CSV found for {symbol} under {self.data_dir}")
        try:
            frame = pd.read_csv(path)
            bars = frame_to_bars(self._normalize_csv(frame, symbol))
        except (OSError, ValueError, pd.errors.ParserError) as exc:
            raise DataProviderError(f"Failed to load {path}: {exc}") from exc
        if not bars:
            raise DataProviderError(f"{symbol}: data has no valid OHLCV rows")
        self._bars_cache[symbol] = bars
        return list(bars)

    def _resolve_path(self, symbol: str) -> Path | None:
        market, bare_symbol = self._split_market_symbol(symbol)
        symbol_upper = bare_symbol.upper()
        symbol_lower = bare_symbol.lower()
        candidates: list[Path] = []
        if market is not None:
            for market_dir in (market.upper(), market.lower()):
                candidates.append(self.data_dir / market_dir / f"{symbol_upper}.csv")
                candidates.append(self.data_dir / market_dir / f"{symbol_lower}.csv")
        candidates.append(self.data_dir / f"{symbol_upper}.csv")
        candidates.append(self.data_dir / f"{symbol_lower}.csv")
        for candidate in dict.fromkeys(candidates):
            if candidate.exists():
                return candidate
        return None

    @staticmethod
    def _split_market_symbol(symbol: str) -> tuple[str | None, str]:
        value = symbol.strip()
        if ":" not in value:
            return None, value
        market, bare_symbol = value.split(":", 1)
        market = market.strip()
        bare_symbol = bare_symbol.strip()
        if not market or not bare_symbol:
            return None, value
        return market, bare_symbol

    def _normalize_csv(self, frame: pd.DataFrame, symbol: str) -> pd.DataFrame:
        lower_to_original = {str(column).strip().lower(): column for column in frame.columns}
        date_column = self._pick_date_column(lower_to_original)
        rename_map: dict[str, str] = {}
        for name in OHLCV_COLUMNS:
            source = lower_to_original.get(name)
            if source is None:
                if name == "volume":
                    continue
                raise ValueError(f"{symbol}: CSV missing required column '{name}'")
            rename_map[source] = name
        normalized = frame.rename(columns=rename_map)
        normalized.index = pd.to_datetime(normalized[date_column], utc=False)
        if "volume" not in normalized.columns:
            normalized["volume"] = 0.0
        normalized = normalized[OHLCV_COLUMNS].apply(pd.to_numeric, errors="coerce")
        normalized["volume"] = normalized["volume"].fillna(0.0)
        return normalized.dropna().sort_index()

    def _pick_date_column(self, lower_to_original: dict[str, str]) -> str:
        for candidate in self.date_column_candidates:
            if candidate in lower_to_original:
                return lower_to_original[candidate]
        candidates = ", ".join(self.date_column_candidates)
        raise ValueError(f"CSV missing date column. Expected one of: {candidates}")
