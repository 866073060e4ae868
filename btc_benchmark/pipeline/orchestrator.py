"""
Pipeline orchestrator for the end-to-end benchmark workflow.

Manages the four stages:
1. Data ingestion (fetch, clean, validate, persist the price table)
2. Feature engineering (indicators, lookback trimming, validation)
3. Modeling (chronological split, model fitting, forecast and hand-off export)
4. Evaluation (alignment, metrics, external forecasts, plots)

Stages exchange data only through the artifacts on disk, so each can be
run on its own.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt

from ..config import Config
from ..data import DataIngestion, DataLoader, chronological_split
from ..exceptions import ExternalArtifactMissingError
from ..features import FeaturePipeline
from ..models import ModelTrainer, export_handoff, load_external_forecast
from ..evaluation import EvaluationHarness, PredictionVisualizer, align_forecast

logger = logging.getLogger(__name__)

STAGES = ['ingest', 'features', 'model', 'evaluate']

# Forecasts that are not closing prices; never ranked against the price models
NON_PRICE_MODELS = ['var', 'garch']


class Pipeline:
    """
    Main pipeline orchestrator.

    Coordinates all stages of the benchmark from data ingestion to the
    metrics table.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: Optional[str] = None,
        client=None
    ):
        """
        Initialize pipeline.

        Args:
            config: Configuration object (or load from path)
            config_path: Path to config file
            client: Market data client passed to ingestion
        """
        self.config = config or Config(config_path)
        self.config.create_directories()

        # Initialize components
        self.ingestion = DataIngestion(self.config, client=client)
        self.loader = DataLoader(self.config)
        self.feature_pipeline = FeaturePipeline(self.config)
        self.trainer = ModelTrainer(self.config)
        self.harness = EvaluationHarness()
        self.visualizer = PredictionVisualizer(self.config.plots_path)

    def run(
        self,
        step: str = 'all',
        models: Optional[List[str]] = None,
        plots: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Run the pipeline.

        Args:
            step: 'all' or a single stage name
            models: Models to fit (default: enabled models from config)
            plots: Write plots (default from config)

        Returns:
            Dictionary with per-stage results
        """
        if step != 'all' and step not in STAGES:
            raise ValueError(f"Unknown step '{step}', expected 'all' or one of {STAGES}")

        start_time = datetime.now()
        stages = STAGES if step == 'all' else [step]

        logger.info("=" * 80)
        logger.info("BTC FORECAST BENCHMARK")
        logger.info(f"Start time: {start_time}")
        logger.info(f"Symbol: {self.config.symbol}")
        logger.info(f"Stages: {stages}")
        logger.info("=" * 80)

        results = {
            'start_time': start_time,
            'stages': stages,
            'steps': {}
        }

        runners = {
            'ingest': self.ingest,
            'features': self.engineer_features,
            'model': lambda: self.train(models),
            'evaluate': lambda: self.evaluate(models, plots)
        }

        try:
            for stage in stages:
                results['steps'][stage] = runners[stage]()

            results['success'] = True

        except Exception as e:
            logger.error(f"Pipeline failed: {e}", exc_info=True)
            results['success'] = False
            results['error'] = str(e)

        end_time = datetime.now()
        results['end_time'] = end_time
        results['duration_seconds'] = (end_time - start_time).total_seconds()

        self._print_summary(results)

        return results

    # ==========================================================================
    # Stages
    # ==========================================================================

    def ingest(self) -> Dict:
        """Run only data ingestion."""
        self._banner("STEP 1: DATA INGESTION")

        df = self.ingestion.fetch_historical_data()
        path = self.ingestion.save_raw_data(df)

        return {
            'success': True,
            'rows': len(df),
            'path': str(path)
        }

    def engineer_features(self) -> Dict:
        """Run only feature engineering."""
        self._banner("STEP 2: FEATURE ENGINEERING")

        features = self.feature_pipeline.run(self.loader)

        logger.info(f"✓ {len(features)} feature rows")

        return {
            'success': True,
            'rows': len(features),
            'first_date': str(features['date'].iloc[0].date()),
            'path': str(self.loader.features_file)
        }

    def train(self, models: Optional[List[str]] = None) -> Dict:
        """Run only the modeling stage."""
        self._banner("STEP 3: MODELING")

        features = self.loader.load_processed_data(use_cache=False)
        split = chronological_split(features, self.config.train_fraction)

        logger.info(f"Train: {len(split.train)} rows, test: {split.horizon} rows "
                    f"(from {split.test_dates.iloc[0].date()})")

        training = self.trainer.train_all_models(split, models)

        for name, model in training.forecasters.items():
            self.trainer.save_model(model)
            self.loader.save_forecast(training.forecasts[name])

        for name in training.failures:
            self.loader.discard_forecast(name)

        self.loader.save_failures(training.failures)

        handoff = {}
        garch = training.forecasters.get('garch')
        if garch is not None:
            paths = export_handoff(
                split.train,
                split.test,
                garch.fitted_volatility,
                training.forecasts['garch'].values,
                self.config.handoff_path,
                columns=self.config.exogenous_columns
            )
            handoff = {role: str(path) for role, path in paths.items()}
        else:
            logger.warning("GARCH unavailable; hand-off matrices not exported")

        return {
            'success': training.success,
            'trained': list(training.forecasts),
            'failures': training.failures,
            'handoff': handoff
        }

    def evaluate(
        self,
        models: Optional[List[str]] = None,
        plots: Optional[bool] = None
    ) -> Dict:
        """Run only the evaluation stage."""
        self._banner("STEP 4: EVALUATION")

        features = self.loader.load_processed_data(use_cache=False)
        split = chronological_split(features, self.config.train_fraction)

        requested = list(models or self.config.model_config.enabled)
        price_models = [m for m in requested if m not in NON_PRICE_MODELS]
        failures = self.loader.load_failures()

        forecasts = self.loader.load_forecasts(price_models)

        external = self.config.external_config
        for name, artifact in external.models.items():
            try:
                forecasts[name] = load_external_forecast(
                    self.config.models_path / artifact['file'],
                    name,
                    split.test_dates,
                    column=artifact.get('column'),
                    window_size=external.window_size
                )
            except ExternalArtifactMissingError as e:
                logger.warning(f"✗ {e}")

        expected = price_models + list(external.models)
        result = self.harness.evaluate(
            split.actuals,
            forecasts,
            dates=split.test_dates,
            expected_models=expected,
            failures={k: v for k, v in failures.items() if k in expected}
        )

        garch = None
        if 'garch' in requested:
            garch = self.loader.load_forecast('garch')
            if garch is not None:
                scores = self.harness.evaluate_volatility(
                    split.test['log_returns'], garch, dates=split.test_dates
                )
                result.add_volatility('garch', scores)
            else:
                result.add_volatility(
                    'garch',
                    status='failed' if 'garch' in failures else 'missing',
                    error=failures.get('garch', 'no forecast produced')
                )

        metrics_path = result.to_csv(self.config.output_path / self.config.metrics_filename)
        result.aligned.to_csv(self.config.output_path / 'aligned_forecasts.csv', index=False)

        ranking = self.harness.rank(result)
        if not ranking.empty:
            logger.info("Price model ranking (RMSE):\n" + ranking.sort_values('rmse').to_string())

        if plots is None:
            plots = self.config.plots_enabled
        if plots:
            self._write_plots(result, split, garch)

        return {
            'success': True,
            'metrics_path': str(metrics_path),
            'best_model': result.best_model,
            'metrics': result.metrics.to_dict(orient='index')
        }

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _write_plots(self, result, split, garch) -> None:
        """Write all evaluation plots; a plotting error never fails the stage."""
        try:
            figures = [
                self.visualizer.plot_forecast_comparison(result.aligned, save_name='forecast_comparison'),
                self.visualizer.plot_metrics(result.metrics, save_name='model_metrics'),
                self.visualizer.plot_residuals(result.aligned, save_name='residuals')
            ]
            if garch is not None:
                figures.append(self.visualizer.plot_volatility(
                    split.test_dates,
                    split.test['log_returns'].to_numpy(),
                    align_forecast(garch, split.horizon),
                    save_name='garch_volatility'
                ))
            for fig in figures:
                plt.close(fig)
        except Exception as e:
            logger.warning(f"Plotting failed: {e}")

    @staticmethod
    def _banner(title: str) -> None:
        logger.info("\n" + "=" * 60)
        logger.info(title)
        logger.info("=" * 60)

    def _print_summary(self, results: Dict) -> None:
        """Print execution summary."""
        logger.info("\n" + "=" * 80)
        logger.info("PIPELINE SUMMARY")
        logger.info("=" * 80)
        logger.info(f"Duration: {results['duration_seconds']:.1f} seconds")
        logger.info(f"Status: {'SUCCESS' if results['success'] else 'FAILED'}")

        for step_name, step_result in results.get('steps', {}).items():
            status = "✓" if step_result.get('success', False) else "✗"
            logger.info(f"  {status} {step_name}")

        logger.info("=" * 80)
