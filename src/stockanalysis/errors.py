"""Custom exceptions for clearer error handling across the package."""

from __future__ import annotations


class StockAnalysisError(Exception):
    """Base exception for all package-specific errors."""


class ConfigError(StockAnalysisError):
    """Raised when configuration needed to build a collaborator is invalid or missing."""


class DataProviderError(StockAnalysisError):
    """Raised when price series or quote retrieval fails."""


class TextGenerationError(StockAnalysisError):
    """Raised when the advisory text generator fails or returns a malformed envelope."""


class AnalysisGenerationFailed(StockAnalysisError):
    """Raised when any collaborator fails while generating an analysis."""

    def __init__(self, symbol: str, cause: BaseException) -> None:
        super().__init__(f"Analysis generation failed for {symbol}: {cause}")
        self.symbol = symbol
        self.cause = cause
