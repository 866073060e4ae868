"""
Feature engineering module for the forecast benchmark.

This module provides:
- Technical indicators (log returns, RSI, SMA, MACD)
- Exogenous regressor matrices for the model adapters
- Feature pipeline orchestration
"""

from .technical import TechnicalIndicators
from .exogenous import EXOGENOUS_COLUMNS, exogenous_matrix, transform_volume
from .pipeline import FeaturePipeline

__all__ = [
    "TechnicalIndicators",
    "EXOGENOUS_COLUMNS",
    "exogenous_matrix",
    "transform_volume",
    "FeaturePipeline"
]
