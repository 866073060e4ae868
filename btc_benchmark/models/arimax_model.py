"""
ARIMAX model adapter.

Regresses the closing price on the exogenous indicator matrix with an
ARIMA error structure whose order is chosen by pmdarima's stepwise
search. Forecasts use the realized test-period regressors, i.e. future
exogenous values are assumed known.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .base import BaseForecaster, ForecastSeries
from ..features.exogenous import EXOGENOUS_COLUMNS

logger = logging.getLogger(__name__)


class ArimaxForecaster(BaseForecaster):
    """Auto-ARIMA on ``close`` with exogenous regressors."""

    DEFAULT_PARAMS = {
        'stepwise': True,
        'seasonal': False,
        'max_p': 5,
        'max_q': 5,
        'suppress_warnings': True,
        'error_action': 'ignore',
        'trace': False
    }

    def __init__(
        self,
        name: str = 'arimax',
        params: Optional[Dict[str, Any]] = None,
        exogenous_columns: Optional[List[str]] = None
    ):
        merged_params = self.DEFAULT_PARAMS.copy()
        if params:
            merged_params.update(params)

        if exogenous_columns is None:
            exogenous_columns = EXOGENOUS_COLUMNS

        super().__init__(name, merged_params, exogenous_columns)

    def fit(
        self,
        train: pd.DataFrame,
        exogenous: Optional[pd.DataFrame] = None
    ) -> 'ArimaxForecaster':
        # pmdarima is compiled against numpy; load it only when the model runs
        import pmdarima as pm

        logger.info(f"Fitting ARIMAX on {len(train)} samples (stepwise search)...")

        X = exogenous.to_numpy() if exogenous is not None else None
        self.model = pm.auto_arima(train['close'].to_numpy(dtype=float), X=X, **self.params)

        self.is_fitted = True
        self.metadata['order'] = self.model.order
        self.metadata['n_samples'] = len(train)
        self.metadata['aic'] = float(self.model.aic())

        logger.info(f"ARIMAX selected order {self.model.order} (AIC={self.metadata['aic']:.2f})")

        return self

    def forecast(
        self,
        horizon: int,
        future_exogenous: Optional[pd.DataFrame] = None,
        future_dates: Optional[pd.Series] = None
    ) -> ForecastSeries:
        self._check_fitted()

        if self.exogenous_columns and future_exogenous is None:
            raise ValueError("ARIMAX needs future regressor values to forecast")

        X = future_exogenous.to_numpy() if future_exogenous is not None else None
        values = self.model.predict(n_periods=horizon, X=X)

        return self._series(np.asarray(values, dtype=float), future_dates)

    def residuals(self) -> np.ndarray:
        """In-sample residuals of the fitted model."""
        self._check_fitted()
        return np.asarray(self.model.resid(), dtype=float)
