"""
VAR model adapter.

Jointly models log returns and volume. The lag order minimises AIC
over 1..max_lags. The output targets returns, not price, so it is kept
out of the price comparison.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from statsmodels.tsa.api import VAR

from .base import BaseForecaster, ForecastSeries

logger = logging.getLogger(__name__)


class VarForecaster(BaseForecaster):
    """Vector autoregression on ``log_returns`` and ``volume``."""

    target = 'log_returns'

    DEFAULT_PARAMS = {
        'columns': ['log_returns', 'volume'],
        'max_lags': 10,
        'trend': 'c'
    }

    def __init__(
        self,
        name: str = 'var',
        params: Optional[Dict[str, Any]] = None,
        exogenous_columns: Optional[List[str]] = None
    ):
        merged_params = self.DEFAULT_PARAMS.copy()
        if params:
            merged_params.update(params)

        # Endogenous only; no regressors
        super().__init__(name, merged_params, None)

        self.columns: List[str] = list(merged_params['columns'])
        self._history: Optional[np.ndarray] = None

    def _max_lags(self, n_obs: int) -> int:
        # Each lag costs k parameters per equation plus the constant
        k = len(self.columns)
        feasible = max(1, n_obs // (k + 2) - 1)
        return max(1, min(int(self.params['max_lags']), feasible))

    def fit(
        self,
        train: pd.DataFrame,
        exogenous: Optional[pd.DataFrame] = None
    ) -> 'VarForecaster':
        data = train[self.columns].dropna().to_numpy(dtype=float)

        max_lags = self._max_lags(len(data))
        model = VAR(data)

        selection = model.select_order(maxlags=max_lags, trend=self.params['trend'])
        lag_order = max(1, int(selection.selected_orders['aic']))

        logger.info(f"VAR lag order {lag_order} selected by AIC (searched 1..{max_lags})")

        self.model = model.fit(lag_order, trend=self.params['trend'])
        self._history = data[-self.model.k_ar:]

        self.is_fitted = True
        self.metadata['lag_order'] = lag_order
        self.metadata['n_samples'] = len(data)

        return self

    def forecast(
        self,
        horizon: int,
        future_exogenous: Optional[pd.DataFrame] = None,
        future_dates: Optional[pd.Series] = None
    ) -> ForecastSeries:
        self._check_fitted()

        history = self._history
        if history is None:
            history = self.model.endog[-self.model.k_ar:]

        predicted = self.model.forecast(y=history, steps=horizon)

        values = predicted[:, 0]
        extras = {col: predicted[:, i] for i, col in enumerate(self.columns[1:], start=1)}

        return self._series(values, future_dates, extras)
