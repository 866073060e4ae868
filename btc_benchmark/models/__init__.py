"""
Models module for the forecast benchmark.

This module provides:
- Base forecaster interface and forecast container
- ARIMAX, Prophet, VAR, GARCH and XGBoost adapters
- Hand-off helpers for externally trained models
- Model fitting orchestration
"""

from .base import BaseForecaster, ForecastSeries
from .arimax_model import ArimaxForecaster
from .prophet_model import ProphetForecaster
from .var_model import VarForecaster
from .garch_model import GarchForecaster
from .xgboost_model import XGBoostForecaster
from .external import export_handoff, load_external_forecast
from .trainer import ModelTrainer, TrainingResult

__all__ = [
    "BaseForecaster",
    "ForecastSeries",
    "ArimaxForecaster",
    "ProphetForecaster",
    "VarForecaster",
    "GarchForecaster",
    "XGBoostForecaster",
    "export_handoff",
    "load_external_forecast",
    "ModelTrainer",
    "TrainingResult"
]
