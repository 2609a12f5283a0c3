"""Collaborator contracts and the bar mapping layer."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol

import pandas as pd

from stockanalysis.domain.models import PriceBar, PriceSnapshot

OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]


class SeriesProvider(Protocol):
    """Interface for bar retrieval."""

    def get_bars(self, symbol: str) -> list[PriceBar]:
        """Return bars in ascending date order."""


class QuoteProvider(Protocol):
    """Interface for latest quote retrieval."""

    def get_quote(self, symbol: str) -> PriceSnapshot:
        """Return the latest price snapshot."""


def frame_to_bars(frame: pd.DataFrame) -> list[PriceBar]:
    """Map a normalized OHLCV frame with a datetime index into bars.

    Rows with a missing price are dropped; missing or negative volume becomes 0.
    """
    if frame is None or frame.empty:
        return []
    missing = [column for column in OHLCV_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"frame missing required columns: {missing}")
    ordered = frame.sort_index()
    bars: list[PriceBar] = []
    for index, row in ordered.iterrows():
        prices = [float(row[column]) for column in ("open", "high", "low", "close")]
        if any(math.isnan(value) for value in prices):
            continue
        volume = float(row["volume"])
        if math.isnan(volume) or volume < 0:
            volume = 0.0
        bars.append(
            PriceBar(
                date=_as_date(index),
                open=prices[0],
                high=prices[1],
                low=prices[2],
                close=prices[3],
                volume=int(volume),
            )
        )
    return bars


def bars_to_frame(bars: Sequence[PriceBar] | None) -> pd.DataFrame:
    """Build an OHLCV frame indexed by bar date, sorted ascending.

    Bars sharing a date collapse to the last one given.
    """
    if not bars:
        return pd.DataFrame(
            columns=OHLCV_COLUMNS,
            index=pd.Index([], name="date"),
            dtype=float,
        )
    ordered = sorted(bars, key=lambda bar: bar.date)
    frame = pd.DataFrame(
        {
            "open": [float(bar.open) for bar in ordered],
            "high": [float(bar.high) for bar in ordered],
            "low": [float(bar.low) for bar in ordered],
            "close": [float(bar.close) for bar in ordered],
            "volume": [float(bar.volume) for bar in ordered],
        },
        index=pd.Index([bar.date for bar in ordered], name="date"),
    )
    return frame[~frame.index.duplicated(keep="last")]


def _as_date(value: object) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(str(value)).date()
