"""
XGBoost model adapter.

Gradient boosted trees regressing the closing price on the exogenous
indicators plus a GARCH volatility column:
- in-sample GARCH volatility for the training matrix
- forecast GARCH volatility for the test matrix

Volume enters unscaled unless ``volume_transform='log'``. Trees cannot
predict outside the range of training targets, so on a trending test
period this model's error dominates the comparison.
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import numpy as np
import xgboost as xgb

from .base import BaseForecaster, ForecastSeries
from ..features.exogenous import EXOGENOUS_COLUMNS, transform_volume

logger = logging.getLogger(__name__)


class XGBoostForecaster(BaseForecaster):
    """
    XGBoost regressor for the closing price.

    Features:
    - Fixed learning rate, depth and round count
    - Optional GARCH volatility column
    - Feature importance tracking
    """

    DEFAULT_PARAMS = {
        'objective': 'reg:squarederror',
        'learning_rate': 0.05,
        'max_depth': 5,
        'n_estimators': 100,
        'random_state': 42,
        'n_jobs': -1
    }

    def __init__(
        self,
        name: str = 'xgboost',
        params: Optional[Dict[str, Any]] = None,
        exogenous_columns: Optional[List[str]] = None,
        volume_transform: str = 'none'
    ):
        """
        Initialize XGBoost forecaster.

        Args:
            name: Model name
            params: Model hyperparameters (merged with defaults)
            exogenous_columns: Regressor columns
            volume_transform: 'none' or 'log'
        """
        merged_params = self.DEFAULT_PARAMS.copy()
        if params:
            merged_params.update(params)

        if exogenous_columns is None:
            exogenous_columns = EXOGENOUS_COLUMNS

        super().__init__(name, merged_params, exogenous_columns)

        self.volume_transform = volume_transform
        self.train_volatility: Optional[np.ndarray] = None
        self.test_volatility: Optional[np.ndarray] = None
        self.feature_names: List[str] = []
        self.feature_importances_: Optional[np.ndarray] = None

        self.model = xgb.XGBRegressor(**merged_params)

    def set_volatility(self, train_volatility, test_volatility) -> 'XGBoostForecaster':
        """
        Attach GARCH volatility as an extra regressor.

        Args:
            train_volatility: Fitted volatility, one value per training row
            test_volatility: Forecast volatility, one value per test row
        """
        self.train_volatility = np.asarray(train_volatility, dtype=float)
        self.test_volatility = np.asarray(test_volatility, dtype=float)
        return self

    def design_matrix(self, frame: pd.DataFrame, role: str = 'train') -> pd.DataFrame:
        matrix = super().design_matrix(frame, role)
        matrix = transform_volume(matrix, self.volume_transform)

        volatility = self.train_volatility if role == 'train' else self.test_volatility
        if volatility is not None:
            if len(volatility) != len(matrix):
                raise ValueError(
                    f"{len(volatility)} volatility values for {len(matrix)} {role} rows"
                )
            matrix = matrix.copy()
            matrix['volatility'] = volatility

        return matrix

    def fit(
        self,
        train: pd.DataFrame,
        exogenous: Optional[pd.DataFrame] = None
    ) -> 'XGBoostForecaster':
        """
        Train the XGBoost model.

        Args:
            train: Training feature table (supplies the ``close`` target)
            exogenous: Training design matrix

        Returns:
            Self for method chaining
        """
        if exogenous is None:
            exogenous = self.design_matrix(train, role='train')

        logger.info(f"Training XGBoost model on {len(exogenous)} samples, features {list(exogenous.columns)}...")

        self.feature_names = list(exogenous.columns)
        self.model.fit(exogenous, train['close'].to_numpy(dtype=float), verbose=False)

        self.feature_importances_ = self.model.feature_importances_

        self.is_fitted = True
        self.metadata['n_samples'] = len(exogenous)
        self.metadata['n_features'] = len(self.feature_names)
        self.metadata['feature_names'] = self.feature_names
        self.metadata['volume_transform'] = self.volume_transform

        return self

    def forecast(
        self,
        horizon: int,
        future_exogenous: Optional[pd.DataFrame] = None,
        future_dates: Optional[pd.Series] = None
    ) -> ForecastSeries:
        self._check_fitted()

        if future_exogenous is None:
            raise ValueError("XGBoost needs a test design matrix to forecast")
        if len(future_exogenous) != horizon:
            raise ValueError(f"Design matrix has {len(future_exogenous)} rows for horizon {horizon}")

        values = self.model.predict(future_exogenous[self.feature_names])

        return self._series(values, future_dates)

    @classmethod
    def load(cls, filepath: str) -> 'XGBoostForecaster':
        instance = super().load(filepath)
        instance.feature_names = instance.metadata.get('feature_names', [])
        instance.volume_transform = instance.metadata.get('volume_transform', 'none')
        return instance

    def get_feature_importance(self, top_n: int = 20) -> pd.DataFrame:
        """
        Get feature importance scores.

        Args:
            top_n: Number of top features to return

        Returns:
            DataFrame with feature importance scores
        """
        if self.feature_importances_ is None:
            logger.warning("Feature importances not available")
            return pd.DataFrame()

        importance_df = pd.DataFrame({
            'feature': self.feature_names,
            'importance': self.feature_importances_
        })

        importance_df = importance_df.sort_values('importance', ascending=False)

        return importance_df.head(top_n)
