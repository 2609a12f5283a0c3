"""Scheduled analysis passes."""

from .scheduler import AnalysisScheduler, dedupe_symbols, is_trading_day

__all__ = ["AnalysisScheduler", "dedupe_symbols", "is_trading_day"]
