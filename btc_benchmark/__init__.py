"""
BTC Forecast Benchmark - comparing forecasting models on daily BTC-USD prices

This package provides a modular architecture for:
- Fetching daily BTC-USD price history from Yahoo Finance
- Engineering technical-indicator features (RSI, SMA, MACD, log returns)
- Fitting ARIMAX, Prophet, VAR, GARCH and XGBoost on a chronological split
- Ingesting forecasts of externally trained LSTM / Hybrid networks
- Scoring every forecast on the same test period (RMSE, MAE)

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "BTC Forecast Benchmark Team"

from .config import Config
from .pipeline.orchestrator import Pipeline

__all__ = ["Config", "Pipeline", "__version__"]
