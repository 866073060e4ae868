"""
Prophet model adapter.

Additive trend + seasonality model with indicator columns added as
extra linear regressors. The future frame carries the test dates and
their regressor values.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .base import BaseForecaster, ForecastSeries

logger = logging.getLogger(__name__)


class ProphetForecaster(BaseForecaster):
    """Prophet on ``close`` with added regressors."""

    DEFAULT_REGRESSORS = ['rsi_14', 'sma_20', 'sma_50', 'volume']

    DEFAULT_PARAMS = {
        'daily_seasonality': False
    }

    def __init__(
        self,
        name: str = 'prophet',
        params: Optional[Dict[str, Any]] = None,
        exogenous_columns: Optional[List[str]] = None
    ):
        merged_params = self.DEFAULT_PARAMS.copy()
        if params:
            merged_params.update(params)

        if exogenous_columns is None:
            exogenous_columns = self.DEFAULT_REGRESSORS

        super().__init__(name, merged_params, exogenous_columns)

    def _frame(self, dates: pd.Series, exogenous: Optional[pd.DataFrame]) -> pd.DataFrame:
        frame = pd.DataFrame({'ds': pd.to_datetime(dates).to_numpy()})
        for col in self.exogenous_columns:
            frame[col] = exogenous[col].to_numpy()
        return frame

    def fit(
        self,
        train: pd.DataFrame,
        exogenous: Optional[pd.DataFrame] = None
    ) -> 'ProphetForecaster':
        from prophet import Prophet

        logger.info(f"Fitting Prophet on {len(train)} samples with regressors {self.exogenous_columns}...")

        frame = self._frame(train['date'], exogenous)
        frame['y'] = train['close'].to_numpy(dtype=float)

        self.model = Prophet(**self.params)
        for col in self.exogenous_columns:
            self.model.add_regressor(col)

        self.model.fit(frame)

        self.is_fitted = True
        self.metadata['n_samples'] = len(train)

        return self

    def forecast(
        self,
        horizon: int,
        future_exogenous: Optional[pd.DataFrame] = None,
        future_dates: Optional[pd.Series] = None
    ) -> ForecastSeries:
        self._check_fitted()

        if future_dates is None or len(future_dates) != horizon:
            raise ValueError("Prophet needs one future date per forecast step")
        if self.exogenous_columns and future_exogenous is None:
            raise ValueError("Prophet needs future regressor values to forecast")

        future = self._frame(future_dates, future_exogenous)
        prediction = self.model.predict(future)

        extras = {
            'yhat_lower': prediction['yhat_lower'].to_numpy(),
            'yhat_upper': prediction['yhat_upper'].to_numpy()
        }

        return self._series(np.asarray(prediction['yhat'], dtype=float), future_dates, extras)
