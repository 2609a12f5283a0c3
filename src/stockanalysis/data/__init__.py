"""Price series and quote provider implementations."""

from .alpha_vantage import AlphaVantageClient
from .base import QuoteProvider, SeriesProvider, bars_to_frame, frame_to_bars
from .csv_data import CsvDataProvider
from .yfinance_data import YFinanceDataProvider

__all__ = [
    "AlphaVantageClient",
    "CsvDataProvider",
    "QuoteProvider",
    "SeriesProvider",
    "YFinanceDataProvider",
    "bars_to_frame",
    "frame_to_bars",
]
