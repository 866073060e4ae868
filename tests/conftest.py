"""Shared fixtures: synthetic price history, feature tables and configs."""

import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pandas as pd
import pytest
import yaml

from btc_benchmark.config import Config
from btc_benchmark.features.technical import TechnicalIndicators


def make_prices(n_rows=200, seed=7, start="2021-01-01", drift=0.002):
    """Geometric random walk with OHLCV columns in PriceSeries layout."""
    rng = np.random.default_rng(seed)
    returns = rng.normal(drift, 0.03, n_rows)
    close = 30000 * np.exp(np.cumsum(returns))
    open_ = close * (1 + rng.normal(0, 0.005, n_rows))

    return pd.DataFrame({
        "date": pd.date_range(start, periods=n_rows, freq="D"),
        "open": open_,
        "high": np.maximum(open_, close) * 1.01,
        "low": np.minimum(open_, close) * 0.99,
        "close": close,
        "volume": rng.uniform(1e9, 5e9, n_rows),
        "adjusted": close,
    })


def make_features(n_rows=200, **kwargs):
    """Feature table built the same way the feature stage builds it."""
    raw = make_prices(n_rows, **kwargs)
    table = TechnicalIndicators.add_all_indicators(raw)
    return table.dropna().reset_index(drop=True)


@pytest.fixture
def raw_prices():
    return make_prices()


@pytest.fixture
def feature_table():
    return make_features()


@pytest.fixture
def config_dict(tmp_path):
    return {
        "data": {
            "symbol": "BTC-USD",
            "start_date": "2021-01-01",
            "end_date": None,
            "min_data_points": 100,
        },
        "storage": {
            "raw_path": str(tmp_path / "data" / "raw"),
            "processed_path": str(tmp_path / "data" / "processed"),
            "models_path": str(tmp_path / "output" / "models"),
            "output_path": str(tmp_path / "output"),
            "handoff_path": str(tmp_path / "output" / "handoff"),
            "plots_path": str(tmp_path / "output" / "plots"),
        },
        "features": {
            "macd": {"fast": 12, "slow": 26, "signal": 9, "percent": True},
        },
        "model": {
            "train_fraction": 0.8,
            "enabled": ["arimax", "prophet", "var", "garch", "xgboost"],
            "timeout_seconds": None,
        },
        "external": {
            "window_size": None,
            "models": {
                "lstm": {"file": "lstm_predictions.csv", "column": "lstm_pred"},
                "hybrid": {"file": "hybrid_predictions.csv", "column": "hybrid_pred"},
            },
        },
        "evaluation": {"plots": False},
        "logging": {"level": "INFO", "file": str(tmp_path / "logs" / "test.log")},
    }


@pytest.fixture
def write_config(tmp_path):
    def _write(data):
        path = tmp_path / "config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return path

    return _write


@pytest.fixture
def config(config_dict, write_config):
    return Config(str(write_config(config_dict)))
