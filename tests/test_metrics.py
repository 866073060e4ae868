"""Tests for error metrics and the evaluation harness."""

import numpy as np
import pandas as pd
import pytest

from btc_benchmark.evaluation.harness import EvaluationHarness
from btc_benchmark.exceptions import AlignmentError
from btc_benchmark.evaluation.metrics import calculate_metrics, compare_models
from btc_benchmark.models.base import ForecastSeries


@pytest.fixture
def actuals():
    rng = np.random.default_rng(3)
    return pd.Series(40000 + np.cumsum(rng.normal(0, 300, 20)))


def test_constant_mean_forecast_rmse_is_population_std(actuals):
    forecast = np.full(len(actuals), actuals.mean())

    scores = calculate_metrics(actuals, forecast)

    assert scores["rmse"] == pytest.approx(np.std(actuals.to_numpy(), ddof=0))
    assert scores["n_points"] == 20


def test_rmse_at_least_mae(actuals):
    rng = np.random.default_rng(11)
    forecast = actuals.to_numpy() + rng.normal(0, 500, len(actuals))

    scores = calculate_metrics(actuals, forecast)

    assert scores["rmse"] >= scores["mae"] >= 0


def test_nan_steps_excluded():
    scores = calculate_metrics([1.0, 2.0, 3.0, 4.0], [np.nan, np.nan, 3.0, 6.0])

    assert scores["n_points"] == 2
    assert scores["mae"] == pytest.approx(1.0)
    assert scores["rmse"] == pytest.approx(np.sqrt(2.0))


def test_no_defined_steps():
    scores = calculate_metrics([1.0, 2.0], [np.nan, np.nan])

    assert scores["n_points"] == 0
    assert np.isnan(scores["rmse"])


def test_shape_mismatch():
    with pytest.raises(ValueError):
        calculate_metrics([1.0, 2.0], [1.0])


def test_compare_models_ranks_lower_error_first():
    comparison = compare_models({
        "arimax": {"rmse": 900.0, "mae": 700.0},
        "xgboost": {"rmse": 5000.0, "mae": 4200.0},
    })

    assert comparison.loc["arimax", "rmse_rank"] == 1
    assert comparison.loc["xgboost", "mae_rank"] == 2


class TestEvaluationHarness:

    def test_padded_forecast_scored_on_tail(self, actuals):
        harness = EvaluationHarness()
        tail = actuals.to_numpy()[5:] + 100.0

        result = harness.evaluate(actuals, {"lstm": tail})

        row = result.metrics.loc["lstm"]
        assert row["n_points"] == 15
        assert row["status"] == "ok"
        assert row["mae"] == pytest.approx(100.0)
        assert result.aligned["lstm"].isna().sum() == 5

    def test_missing_model_does_not_abort_others(self, actuals):
        harness = EvaluationHarness()
        forecasts = {
            name: actuals.to_numpy() + offset
            for name, offset in [("arimax", 10.0), ("prophet", 20.0), ("xgboost", 30.0), ("hybrid", 40.0)]
        }

        result = harness.evaluate(
            actuals,
            forecasts,
            expected_models=["arimax", "prophet", "xgboost", "lstm", "hybrid"]
        )

        assert result.metrics.loc["lstm", "status"] == "missing"
        assert np.isnan(result.metrics.loc["lstm", "rmse"])
        for name, offset in [("arimax", 10.0), ("prophet", 20.0), ("xgboost", 30.0), ("hybrid", 40.0)]:
            assert result.metrics.loc[name, "status"] == "ok"
            assert result.metrics.loc[name, "rmse"] == pytest.approx(offset)
        assert list(result.metrics.index[:5]) == ["arimax", "prophet", "xgboost", "lstm", "hybrid"]

    def test_failed_model_reported_with_message(self, actuals):
        harness = EvaluationHarness()

        result = harness.evaluate(
            actuals,
            {"arimax": actuals.to_numpy()},
            failures={"prophet": "prophet: optimizer diverged"}
        )

        assert result.metrics.loc["prophet", "status"] == "failed"
        assert "diverged" in result.metrics.loc["prophet", "error"]
        assert result.metrics.loc["arimax", "rmse"] == pytest.approx(0.0)

    def test_overlong_forecast_is_fatal(self, actuals):
        harness = EvaluationHarness()

        with pytest.raises(AlignmentError, match="bad"):
            harness.evaluate(
                actuals,
                {"good": actuals.to_numpy(), "bad": np.ones(len(actuals) + 1)}
            )

    def test_unexpected_absent_model_left_out(self, actuals):
        harness = EvaluationHarness()

        result = harness.evaluate(actuals, {"arimax": actuals.to_numpy()})

        assert list(result.metrics.index) == ["arimax"]

    def test_aligned_frame_carries_dates(self, actuals):
        harness = EvaluationHarness()
        dates = pd.date_range("2023-03-01", periods=len(actuals), freq="D")
        forecast = ForecastSeries("arimax", actuals.to_numpy(), dates=dates)

        result = harness.evaluate(actuals, {"arimax": forecast}, dates=dates)

        assert list(result.aligned.columns) == ["date", "actual", "arimax"]
        assert result.aligned["date"].iloc[0] == dates[0]
        assert result.best_model == "arimax"

    def test_stale_dated_forecast_is_fatal(self):
        harness = EvaluationHarness()
        actual = pd.Series(np.arange(22, dtype=float))
        dates = pd.date_range("2023-01-01", periods=22, freq="D")
        # Same length as the covered tail, but produced for an earlier period
        stale = ForecastSeries(
            "arimax", np.arange(-2, 18, dtype=float),
            dates=pd.date_range("2022-12-30", periods=20, freq="D")
        )

        with pytest.raises(AlignmentError, match="arimax"):
            harness.evaluate(actual, {"arimax": stale}, dates=dates)

    def test_dated_tail_forecast_accepted(self):
        harness = EvaluationHarness()
        actual = pd.Series(np.arange(22, dtype=float))
        dates = pd.date_range("2023-01-01", periods=22, freq="D")
        tail = ForecastSeries("lstm", np.arange(2, 22, dtype=float), dates=dates[2:])

        result = harness.evaluate(actual, {"lstm": tail}, dates=dates)

        assert result.metrics.loc["lstm", "rmse"] == pytest.approx(0.0)
        assert result.metrics.loc["lstm", "n_points"] == 20

    def test_non_price_forecast_rejected(self, actuals):
        harness = EvaluationHarness()
        returns = ForecastSeries("var", np.zeros(len(actuals)), target="log_returns")

        with pytest.raises(ValueError, match="var"):
            harness.evaluate(actuals, {"arimax": actuals.to_numpy(), "var": returns})

    def test_stale_volatility_forecast_is_fatal(self):
        harness = EvaluationHarness()
        dates = pd.date_range("2023-01-01", periods=4, freq="D")
        sigma = ForecastSeries(
            "garch", [0.01, 0.02, 0.03, 0.01], target="volatility",
            dates=pd.date_range("2022-12-01", periods=4, freq="D")
        )

        with pytest.raises(AlignmentError):
            harness.evaluate_volatility(np.array([0.01, -0.02, 0.03, -0.01]), sigma, dates=dates)

    def test_volatility_scored_against_absolute_returns(self):
        harness = EvaluationHarness()
        returns = np.array([0.01, -0.02, 0.03, -0.01])
        sigma = np.array([0.01, 0.02, 0.03, 0.01])

        scores = harness.evaluate_volatility(returns, sigma)

        assert scores["rmse"] == pytest.approx(0.0)
        assert scores["n_points"] == 4

    def test_result_csv_round_trip(self, actuals, tmp_path):
        harness = EvaluationHarness()
        result = harness.evaluate(actuals, {"arimax": actuals.to_numpy() + 5.0}, expected_models=["lstm"])
        result.add_volatility("garch", {"rmse": 0.01, "mae": 0.008, "n_points": 20})

        path = result.to_csv(tmp_path / "metrics.csv")
        written = pd.read_csv(path, index_col="model")

        assert set(written.index) == {"arimax", "lstm", "garch"}
        assert written.loc["garch", "target"] == "volatility"
        assert written.loc["lstm", "status"] == "missing"

    def test_best_model_ignores_volatility(self, actuals):
        harness = EvaluationHarness()
        result = harness.evaluate(actuals, {"arimax": actuals.to_numpy() + 50.0})
        result.add_volatility("garch", {"rmse": 0.01, "mae": 0.01, "n_points": 20})

        assert result.best_model == "arimax"
