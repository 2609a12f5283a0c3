"""Technical indicator engine."""

from .engine import atr, bollinger_bands, calculate_all, ema, macd, rsi, sma, vwap

__all__ = ["atr", "bollinger_bands", "calculate_all", "ema", "macd", "rsi", "sma", "vwap"]
