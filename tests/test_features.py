"""Tests for technical indicators and the feature pipeline."""

import numpy as np
import pandas as pd
import pytest

from btc_benchmark.exceptions import DataValidationError
from btc_benchmark.features.exogenous import EXOGENOUS_COLUMNS, exogenous_matrix, transform_volume
from btc_benchmark.features.pipeline import FeaturePipeline
from btc_benchmark.features.technical import TechnicalIndicators


class TestIndicators:

    def test_ema_seeded_with_simple_average(self):
        series = pd.Series(np.arange(1, 11, dtype=float))

        ema = TechnicalIndicators.ema(series, 3)

        assert ema.iloc[:2].isna().all()
        assert ema.iloc[2] == pytest.approx(2.0)
        # alpha = 2 / (3 + 1)
        assert ema.iloc[3] == pytest.approx(3.0)

    def test_ema_skips_leading_nan(self):
        series = pd.Series([np.nan, np.nan, 2.0, 4.0, 6.0, 8.0])

        ema = TechnicalIndicators.ema(series, 2)

        assert ema.iloc[:3].isna().all()
        assert ema.iloc[3] == pytest.approx(3.0)

    def test_ema_short_series_undefined(self):
        assert TechnicalIndicators.ema(pd.Series([1.0, 2.0]), 5).isna().all()

    def test_log_returns(self):
        df = pd.DataFrame({"close": [100.0, 110.0, 99.0]})

        out = TechnicalIndicators.log_returns(df)

        assert np.isnan(out["log_returns"].iloc[0])
        assert out["log_returns"].iloc[1] == pytest.approx(np.log(1.1))
        assert "log_returns" not in df.columns

    def test_sma_window(self):
        df = pd.DataFrame({"close": np.arange(1, 61, dtype=float)})

        out = TechnicalIndicators.sma(df, periods=[20, 50])

        assert out["sma_20"].iloc[:19].isna().all()
        assert out["sma_20"].iloc[19] == pytest.approx(10.5)
        assert out["sma_50"].first_valid_index() == 49

    def test_rsi_matches_wilder_smoothing(self):
        close = pd.Series([44.0, 44.5, 44.2, 44.8, 45.1, 44.9, 45.6, 46.0])
        period = 3

        out = TechnicalIndicators.rsi(pd.DataFrame({"close": close}), period=period)

        delta = close.diff().iloc[1:].to_numpy()
        gains, losses = np.clip(delta, 0, None), np.clip(-delta, 0, None)
        avg_gain, avg_loss = gains[:period].mean(), losses[:period].mean()
        expected = [100 * avg_gain / (avg_gain + avg_loss)]
        for g, l in zip(gains[period:], losses[period:]):
            avg_gain = (avg_gain * (period - 1) + g) / period
            avg_loss = (avg_loss * (period - 1) + l) / period
            expected.append(100 * avg_gain / (avg_gain + avg_loss))

        rsi = out["rsi_3"]
        assert rsi.iloc[:period].isna().all()
        np.testing.assert_allclose(rsi.iloc[period:].to_numpy(), expected)

    def test_rsi_bounds(self):
        rising = pd.DataFrame({"close": np.arange(1, 40, dtype=float)})
        flat = pd.DataFrame({"close": np.full(40, 5.0)})

        assert TechnicalIndicators.rsi(rising)["rsi_14"].dropna().eq(100).all()
        assert TechnicalIndicators.rsi(flat)["rsi_14"].dropna().eq(50).all()

    def test_macd_percent(self):
        close = pd.Series(100 * np.exp(np.linspace(0, 0.5, 60)))
        df = pd.DataFrame({"close": close})

        out = TechnicalIndicators.macd(df)

        fast = TechnicalIndicators.ema(close, 12)
        slow = TechnicalIndicators.ema(close, 26)
        np.testing.assert_allclose(
            out["macd"].dropna().to_numpy(),
            (100 * (fast / slow - 1)).dropna().to_numpy()
        )
        assert out["macd"].first_valid_index() == 25
        assert out["macd_signal"].first_valid_index() == 33

    def test_macd_absolute(self):
        df = pd.DataFrame({"close": np.linspace(10, 20, 60)})

        out = TechnicalIndicators.macd(df, percent=False)

        # Rising series: fast average sits above slow average
        assert (out["macd"].dropna() > 0).all()


class TestFeaturePipeline:

    def test_lookback_rows_dropped_not_filled(self, config, raw_prices):
        features = FeaturePipeline(config).create_features(raw_prices)

        assert len(features) == len(raw_prices) - 49
        assert features["date"].iloc[0] == raw_prices["date"].iloc[49]
        assert not features.isnull().any().any()
        assert features["rsi_14"].between(0, 100).all()

    def test_raw_input_not_mutated(self, config, raw_prices):
        original = raw_prices.copy()

        FeaturePipeline(config).create_features(raw_prices)

        pd.testing.assert_frame_equal(raw_prices, original)

    def test_unordered_input_rejected(self, config, raw_prices):
        shuffled = raw_prices.iloc[::-1].reset_index(drop=True)

        with pytest.raises(DataValidationError):
            FeaturePipeline(config).create_features(shuffled)

    def test_missing_column_rejected(self, config, raw_prices):
        with pytest.raises(DataValidationError):
            FeaturePipeline(config).create_features(raw_prices.drop(columns=["volume"]))

    def test_too_short_for_lookback(self, config, raw_prices):
        with pytest.raises(DataValidationError):
            FeaturePipeline(config).create_features(raw_prices.head(40))

    def test_feature_columns(self, config):
        assert FeaturePipeline(config).feature_columns == [
            "log_returns", "rsi_14", "sma_20", "sma_50", "macd", "macd_signal"
        ]


class TestExogenous:

    def test_column_order_and_alignment(self, feature_table):
        matrix = exogenous_matrix(feature_table, ["volume", "rsi_14"])

        assert list(matrix.columns) == ["volume", "rsi_14"]
        assert matrix.index.equals(feature_table.index)

    def test_default_columns(self, feature_table):
        assert list(exogenous_matrix(feature_table).columns) == EXOGENOUS_COLUMNS

    def test_unknown_column(self, feature_table):
        with pytest.raises(ValueError):
            exogenous_matrix(feature_table, ["close"])

    def test_missing_column(self, feature_table):
        with pytest.raises(KeyError):
            exogenous_matrix(feature_table.drop(columns=["macd"]), ["macd"])

    def test_log_volume(self, feature_table):
        matrix = exogenous_matrix(feature_table)

        logged = transform_volume(matrix, "log")

        np.testing.assert_allclose(logged["volume"], np.log1p(matrix["volume"]))
        assert (matrix["volume"] > 1e6).all()

    def test_unknown_transform(self, feature_table):
        with pytest.raises(ValueError):
            transform_volume(exogenous_matrix(feature_table), "sqrt")
