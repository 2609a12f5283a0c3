"""Trend classification and analysis orchestration."""

from .trend import TrendDetector

__all__ = ["TrendDetector"]
