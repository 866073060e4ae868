"""
Evaluation harness for comparing model forecasts on one test period.

Every forecast is aligned to the horizon and scored only on the steps
where it and the actual are both defined. Models that failed or never
produced a forecast stay in the table with their status instead of
being dropped.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import pandas as pd
import numpy as np

from .alignment import align_forecast
from .metrics import calculate_metrics, compare_models
from ..exceptions import AlignmentError
from ..models.base import ForecastSeries

logger = logging.getLogger(__name__)

STATUS_OK = 'ok'
STATUS_FAILED = 'failed'
STATUS_MISSING = 'missing'

METRIC_COLUMNS = ['target', 'rmse', 'mae', 'n_points', 'status', 'error']


@dataclass
class EvaluationResult:
    """Metrics table and aligned forecasts of one evaluation run."""
    metrics: pd.DataFrame
    aligned: pd.DataFrame
    volatility: Dict[str, float] = field(default_factory=dict)

    @property
    def best_model(self) -> Optional[str]:
        """Lowest-RMSE price model, or None when nothing was scored."""
        scored = self.metrics[
            (self.metrics['status'] == STATUS_OK) & (self.metrics['target'] == 'close')
        ]
        scored = scored.dropna(subset=['rmse'])
        if scored.empty:
            return None
        return scored['rmse'].astype(float).idxmin()

    def add_volatility(
        self,
        name: str,
        metrics: Optional[Dict[str, float]] = None,
        status: str = STATUS_OK,
        error: Optional[str] = None
    ) -> None:
        """Append a volatility model's scores (or its failure) to the metrics table."""
        if metrics is None:
            metrics = {'rmse': np.nan, 'mae': np.nan, 'n_points': 0}
        else:
            self.volatility = dict(metrics)

        row = pd.DataFrame(
            [{'target': 'volatility', **metrics, 'status': status, 'error': error}],
            index=pd.Index([name], name='model')
        )
        self.metrics = pd.concat([self.metrics, row[METRIC_COLUMNS]])

    def to_csv(self, path: Union[str, Path]) -> Path:
        """Write the flat metrics table."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.metrics.to_csv(path, index_label='model')
        logger.info(f"Metrics saved to {path}")
        return path


class EvaluationHarness:
    """
    Scores point forecasts against the test-period actuals.

    Example:
        >>> harness = EvaluationHarness()
        >>> result = harness.evaluate(split.actuals, forecasts, dates=split.test_dates)
        >>> result.metrics
    """

    def evaluate(
        self,
        actuals: Union[pd.Series, np.ndarray],
        model_forecasts: Mapping[str, Union[ForecastSeries, np.ndarray]],
        dates: Optional[Iterable] = None,
        expected_models: Optional[Iterable[str]] = None,
        failures: Optional[Mapping[str, str]] = None
    ) -> EvaluationResult:
        """
        Align and score every forecast.

        Args:
            actuals: Actual values over the test period (length = horizon)
            model_forecasts: Forecast per model name
            dates: Test dates; added as the ``date`` column of ``aligned``
            expected_models: Models that should have produced a forecast;
                absent ones are reported as ``missing``
            failures: Error message per model that failed upstream

        Returns:
            EvaluationResult

        Raises:
            AlignmentError: A forecast is longer than the horizon, or its
                dates are not the last test dates
            ValueError: A forecast does not predict closing prices
        """
        actual = np.asarray(actuals, dtype=float).reshape(-1)
        horizon = len(actual)
        failures = dict(failures or {})

        aligned = pd.DataFrame({'actual': actual})
        if dates is not None:
            dates = pd.DatetimeIndex(pd.to_datetime(list(dates)))
            if len(dates) != horizon:
                raise AlignmentError(f"{len(dates)} dates for {horizon} actuals")
            aligned.insert(0, 'date', dates)

        logger.info(f"Evaluating {len(model_forecasts)} forecasts over a {horizon}-step horizon")

        rows: Dict[str, Dict] = {}

        for name, forecast in model_forecasts.items():
            target = forecast.target if isinstance(forecast, ForecastSeries) else 'close'
            if target != 'close':
                raise ValueError(
                    f"{name}: a '{target}' forecast cannot be scored against closing prices"
                )

            try:
                values = align_forecast(forecast, horizon)
            except AlignmentError as e:
                raise AlignmentError(f"{name}: {e}") from e

            if dates is not None:
                self._check_dates(name, forecast, dates)

            aligned[name] = values
            scores = calculate_metrics(actual, values)
            rows[name] = {'target': target, **scores, 'status': STATUS_OK, 'error': None}

            if scores['n_points'] < horizon:
                logger.info(f"  {name}: scored on {scores['n_points']}/{horizon} steps")
            logger.info(f"✓ {name}: RMSE={scores['rmse']:.4f}, MAE={scores['mae']:.4f}")

        for name, message in failures.items():
            if name not in rows:
                rows[name] = self._empty_row('close', STATUS_FAILED, message)

        for name in expected_models or []:
            if name not in rows:
                logger.warning(f"✗ {name}: no forecast available")
                rows[name] = self._empty_row('close', STATUS_MISSING, 'no forecast produced')

        order = list(expected_models or [])
        order += [name for name in rows if name not in order]

        metrics = pd.DataFrame.from_dict(
            {name: rows[name] for name in order}, orient='index'
        )
        metrics = metrics.reindex(columns=METRIC_COLUMNS)
        metrics.index.name = 'model'
        metrics['n_points'] = metrics['n_points'].astype(int)

        return EvaluationResult(metrics=metrics, aligned=aligned)

    def evaluate_volatility(
        self,
        realized_returns: Union[pd.Series, np.ndarray],
        sigma: Union[ForecastSeries, np.ndarray],
        dates: Optional[Iterable] = None
    ) -> Dict[str, float]:
        """
        Score a volatility forecast against absolute realized returns.

        Args:
            realized_returns: Log returns over the test period
            sigma: Forecast conditional standard deviation
            dates: Test dates; a dated sigma must cover their tail

        Returns:
            Dictionary with 'rmse', 'mae' and 'n_points'
        """
        realized = np.abs(np.asarray(realized_returns, dtype=float).reshape(-1))
        values = align_forecast(sigma, len(realized))
        if dates is not None:
            self._check_dates('volatility', sigma, pd.DatetimeIndex(pd.to_datetime(list(dates))))

        scores = calculate_metrics(realized, values)
        logger.info(f"✓ volatility: RMSE={scores['rmse']:.6f}, MAE={scores['mae']:.6f}")

        return scores

    @staticmethod
    def _check_dates(name: str, forecast, dates: pd.DatetimeIndex) -> None:
        """A dated forecast must cover exactly the final test dates."""
        if not isinstance(forecast, ForecastSeries) or forecast.dates is None or not len(forecast):
            return

        expected = dates[len(dates) - len(forecast):]
        if not forecast.dates.normalize().equals(expected.normalize()):
            raise AlignmentError(
                f"{name}: forecast dates {forecast.dates[0].date()}..{forecast.dates[-1].date()} "
                f"do not match test dates {expected[0].date()}..{expected[-1].date()}"
            )

    @staticmethod
    def rank(result: EvaluationResult) -> pd.DataFrame:
        """Rank the scored price models by error."""
        scored = result.metrics[
            (result.metrics['status'] == STATUS_OK) & (result.metrics['target'] == 'close')
        ]
        return compare_models(scored[['rmse', 'mae', 'n_points']].to_dict(orient='index'))

    @staticmethod
    def _empty_row(target: str, status: str, error: str) -> Dict:
        return {
            'target': target,
            'rmse': np.nan,
            'mae': np.nan,
            'n_points': 0,
            'status': status,
            'error': error
        }
