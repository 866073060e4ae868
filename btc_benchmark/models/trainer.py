"""
Model fitting orchestration module.

Handles:
- Adapter construction from configuration
- Run order (GARCH before XGBoost)
- Per-model failure isolation and optional timeouts
- Model persistence
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .base import BaseForecaster, ForecastSeries
from .arimax_model import ArimaxForecaster
from .prophet_model import ProphetForecaster
from .var_model import VarForecaster
from .garch_model import GarchForecaster
from .xgboost_model import XGBoostForecaster
from ..exceptions import ForecastTimeoutError, ModelFitError

logger = logging.getLogger(__name__)

MODEL_ORDER = ['garch', 'arimax', 'prophet', 'var', 'xgboost']


@dataclass
class TrainingResult:
    """Outcome of fitting every requested model on one split."""
    forecasts: Dict[str, ForecastSeries] = field(default_factory=dict)
    forecasters: Dict[str, BaseForecaster] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures


class ModelTrainer:
    """
    Model fitting orchestrator.

    Fits each enabled adapter on the same split. A failing adapter is
    logged and recorded; the remaining adapters still run.
    """

    def __init__(self, config):
        """
        Initialize model trainer.

        Args:
            config: Configuration object
        """
        self.config = config
        self.model_config = config.model_config
        self._factories: Dict[str, Callable[[], BaseForecaster]] = {
            'arimax': lambda: ArimaxForecaster(
                params=self.model_config.arimax_params,
                exogenous_columns=self.model_config.exogenous_columns
            ),
            'prophet': lambda: ProphetForecaster(
                params=self.model_config.prophet_params,
                exogenous_columns=self.model_config.prophet_regressors
            ),
            'var': lambda: VarForecaster(params=self.model_config.var_params),
            'garch': lambda: GarchForecaster(params=self.model_config.garch_params),
            'xgboost': lambda: XGBoostForecaster(
                params=self.model_config.xgboost_params,
                exogenous_columns=self.model_config.exogenous_columns,
                volume_transform=self.model_config.volume_transform
            )
        }

    def register(self, name: str, factory: Callable[[], BaseForecaster]) -> None:
        """Add or replace the adapter built for ``name``."""
        self._factories[name] = factory

    def create_model(self, name: str) -> BaseForecaster:
        """
        Create an adapter instance based on configuration.

        Args:
            name: Model name ('arimax', 'prophet', 'var', 'garch', 'xgboost')

        Returns:
            Unfitted adapter
        """
        if name not in self._factories:
            raise ValueError(f"Unknown model: {name}")
        return self._factories[name]()

    def _run_with_timeout(self, func: Callable, model_name: str):
        timeout = self.model_config.timeout_seconds
        if timeout is None:
            return func()

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(func)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise ForecastTimeoutError(model_name, f"exceeded {timeout}s time budget")
        finally:
            # A timed-out fit keeps running in its thread; do not wait for it
            executor.shutdown(wait=False, cancel_futures=True)

    def fit_model(
        self,
        name: str,
        split,
        garch: Optional[GarchForecaster] = None
    ) -> Tuple[BaseForecaster, ForecastSeries]:
        """
        Fit one adapter on ``split`` and forecast its test period.

        Args:
            name: Model name
            split: ChronologicalSplit
            garch: Fitted GARCH adapter (required for XGBoost)

        Returns:
            Tuple of (fitted adapter, forecast)
        """
        logger.info(f"Starting {name}...")

        try:
            model = self.create_model(name)

            if isinstance(model, XGBoostForecaster):
                if garch is None or not garch.is_fitted:
                    raise ModelFitError(name, "GARCH volatility unavailable")
                volatility_forecast = garch.forecast(split.horizon)
                model.set_volatility(garch.fitted_volatility, volatility_forecast.values)

            forecast = self._run_with_timeout(
                lambda: model.fit_and_forecast(split.train, split.test, split.horizon),
                name
            )
        except ModelFitError:
            raise
        except Exception as e:
            raise ModelFitError(name, str(e)) from e

        return model, forecast

    def train_all_models(
        self,
        split,
        models: Optional[List[str]] = None
    ) -> TrainingResult:
        """
        Fit all requested models on a split.

        Args:
            split: ChronologicalSplit
            models: Model names (default: enabled models from config)

        Returns:
            TrainingResult with forecasts and per-model failures
        """
        requested = list(models or self.model_config.enabled)
        ordered = [m for m in MODEL_ORDER if m in requested]
        ordered += [m for m in requested if m not in MODEL_ORDER]

        result = TrainingResult()

        for name in ordered:
            try:
                model, forecast = self.fit_model(name, split, garch=result.forecasters.get('garch'))
            except ModelFitError as e:
                logger.error(f"✗ {e}")
                result.failures[name] = str(e)
                continue

            result.forecasters[name] = model
            result.forecasts[name] = forecast

            logger.info(f"✓ {name} trained")

        logger.info(f"Trained {len(result.forecasts)}/{len(ordered)} models")

        return result

    def save_model(self, model: BaseForecaster) -> Path:
        """
        Save a fitted adapter to disk.

        Args:
            model: Fitted adapter

        Returns:
            Path to saved model
        """
        filepath = self.config.models_path / f"{model.name}_fit.joblib"
        model.save(str(filepath))
        return filepath
