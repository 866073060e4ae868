"""End-to-end pipeline runs with stand-in data source and models."""

import importlib.util
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from conftest import make_prices
from test_data import StaticClient
from test_trainer import BrokenForecaster, ConstantForecaster, FakeGarch

from btc_benchmark.pipeline import Pipeline


@pytest.fixture
def pipeline(config):
    pipeline = Pipeline(config, client=StaticClient(make_prices(200)))
    trainer = pipeline.trainer
    trainer.register('arimax', lambda: ConstantForecaster('arimax', 35000.0))
    trainer.register('prophet', lambda: BrokenForecaster('prophet'))
    trainer.register('var', lambda: ConstantForecaster('var', 0.0))
    trainer.register('garch', lambda: FakeGarch('garch', 0.03))
    trainer.register('xgboost', lambda: ConstantForecaster('xgboost', 30000.0))
    return pipeline


def _write_lstm(config, n_rows):
    path = config.models_path / "lstm_predictions.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({"lstm_pred": np.full(n_rows, 33000.0)}).to_csv(path, index=False)


def test_full_run(pipeline, config):
    _write_lstm(config, 25)

    results = pipeline.run(plots=True)

    assert results['success'], results.get('error')
    assert results['steps']['features']['rows'] == 151
    assert results['steps']['model']['failures'].keys() == {'prophet'}

    metrics = pd.read_csv(config.output_path / "model_metrics.csv", index_col="model")

    assert metrics.loc['arimax', 'status'] == 'ok'
    assert metrics.loc['arimax', 'n_points'] == 31
    assert metrics.loc['prophet', 'status'] == 'failed'
    assert metrics.loc['lstm', 'n_points'] == 25
    assert metrics.loc['hybrid', 'status'] == 'missing'
    assert metrics.loc['garch', 'target'] == 'volatility'
    assert 'var' not in metrics.index

    assert (config.handoff_path / "test_features.csv").exists()
    assert (config.models_path / "garch_fit.joblib").exists()
    assert (config.models_path / "arimax_forecast.csv").exists()
    assert not (config.models_path / "prophet_forecast.csv").exists()
    for name in ["forecast_comparison", "model_metrics", "residuals", "garch_volatility"]:
        assert (config.plots_path / f"{name}.png").exists()


def test_evaluate_stage_alone_uses_stored_artifacts(pipeline, config):
    assert pipeline.run(step='model')['success'] is False

    pipeline.run(step='ingest')
    pipeline.run(step='features')
    pipeline.run(step='model')

    fresh = Pipeline(config)
    results = fresh.run(step='evaluate', plots=False)

    metrics = results['steps']['evaluate']['metrics']
    assert metrics['prophet']['status'] == 'failed'
    assert metrics['lstm']['status'] == 'missing'
    assert results['steps']['evaluate']['best_model'] in {'arimax', 'xgboost'}


def test_oversized_external_artifact_fails_evaluation(pipeline, config):
    _write_lstm(config, 40)

    results = pipeline.run(plots=False)

    assert not results['success']
    assert 'lstm' in results['error']
    assert 'model' in results['steps']
    assert 'evaluate' not in results['steps']


def test_forecasts_from_an_older_test_period_fail_evaluation(pipeline, config):
    pipeline.run(step='ingest')
    pipeline.run(step='features')
    pipeline.run(step='model')

    # Longer history moves the test period; stored forecasts are now stale
    pipeline.ingestion.client = StaticClient(make_prices(220))
    pipeline.run(step='ingest')
    pipeline.run(step='features')

    results = pipeline.run(step='evaluate', plots=False)

    assert not results['success']
    assert 'arimax' in results['error']
    assert not (config.output_path / "model_metrics.csv").exists()


def test_unknown_step(pipeline):
    with pytest.raises(ValueError):
        pipeline.run(step='predict')


def test_cli_exit_code(config):
    script = Path(__file__).resolve().parent.parent / "scripts" / "run_pipeline.py"
    spec = importlib.util.spec_from_file_location("run_pipeline", script)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    args = module.parse_args(["--step", "evaluate", "--no-plots", "--models", "arimax"])
    assert args.step == "evaluate"
    assert args.no_plots and args.models == ["arimax"]

    # No feature table yet
    assert module.main(["--config", str(config.config_path), "--step", "evaluate"]) == 1
