"""
Base forecaster interface for all model adapters.

Defines the forecast container shared by every adapter and the
common fit / forecast interface they implement.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime

import pandas as pd
import numpy as np
import joblib

from ..features.exogenous import exogenous_matrix

logger = logging.getLogger(__name__)


@dataclass
class ForecastSeries:
    """
    Ordered point predictions of one model over the test horizon.

    A series shorter than the horizon covers only its final steps.
    ``extras`` holds companion series of the same length (e.g. the VAR
    volume forecast or Prophet's interval bounds).
    """
    model_name: str
    values: np.ndarray
    target: str = 'close'
    dates: Optional[pd.DatetimeIndex] = None
    extras: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=float).reshape(-1)

        if self.dates is not None:
            self.dates = pd.DatetimeIndex(self.dates)
            if len(self.dates) != len(self.values):
                raise ValueError(
                    f"{self.model_name}: {len(self.dates)} dates for {len(self.values)} values"
                )

        extras = {}
        for name, series in self.extras.items():
            series = np.asarray(series, dtype=float).reshape(-1)
            if len(series) != len(self.values):
                raise ValueError(f"{self.model_name}: extra series '{name}' has wrong length")
            extras[name] = series
        self.extras = extras

    def __len__(self) -> int:
        return len(self.values)

    def to_series(self) -> pd.Series:
        """Values as a pandas Series, indexed by date when dates are known."""
        return pd.Series(self.values, index=self.dates, name=self.model_name)

    def to_frame(self) -> pd.DataFrame:
        """Flat tabular form used for persistence."""
        frame = pd.DataFrame({'forecast': self.values})
        if self.dates is not None:
            frame.insert(0, 'date', self.dates)
        frame['target'] = self.target
        for name, series in self.extras.items():
            frame[name] = series
        return frame

    @classmethod
    def from_frame(cls, model_name: str, frame: pd.DataFrame) -> 'ForecastSeries':
        """Inverse of ``to_frame``."""
        reserved = {'date', 'forecast', 'target'}
        target = frame['target'].iloc[0] if 'target' in frame.columns and len(frame) else 'close'
        dates = frame['date'] if 'date' in frame.columns else None
        extras = {c: frame[c].to_numpy() for c in frame.columns if c not in reserved}

        return cls(
            model_name=model_name,
            values=frame['forecast'].to_numpy(),
            target=target,
            dates=dates,
            extras=extras
        )


class BaseForecaster(ABC):
    """
    Abstract base class for forecasting model adapters.

    Adapters never mutate the frames they receive. Apart from the
    fitted library object they keep no state between runs.
    """

    target: str = 'close'

    def __init__(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        exogenous_columns: Optional[List[str]] = None
    ):
        """
        Initialize base forecaster.

        Args:
            name: Model name identifier
            params: Library parameters
            exogenous_columns: Regressors used by this model (None for none)
        """
        self.name = name
        self.params = params or {}
        self.exogenous_columns = list(exogenous_columns) if exogenous_columns else []
        self.model = None
        self.is_fitted = False
        self.metadata: Dict[str, Any] = {
            'created_at': datetime.now().isoformat(),
            'name': name
        }

    @abstractmethod
    def fit(
        self,
        train: pd.DataFrame,
        exogenous: Optional[pd.DataFrame] = None
    ) -> 'BaseForecaster':
        """
        Fit the model on the training prefix.

        Args:
            train: Training feature table
            exogenous: Regressor matrix row-aligned with ``train``

        Returns:
            Self for method chaining
        """
        pass

    @abstractmethod
    def forecast(
        self,
        horizon: int,
        future_exogenous: Optional[pd.DataFrame] = None,
        future_dates: Optional[pd.Series] = None
    ) -> ForecastSeries:
        """
        Forecast ``horizon`` steps past the end of the training data.

        Args:
            horizon: Number of steps
            future_exogenous: Regressor values for the forecast steps
            future_dates: Dates of the forecast steps

        Returns:
            ForecastSeries of length ``horizon``
        """
        pass

    def design_matrix(self, frame: pd.DataFrame, role: str = 'train') -> Optional[pd.DataFrame]:
        """
        Regressors for ``frame``; ``role`` is 'train' or 'test'.

        Returns None for models without exogenous inputs.
        """
        if not self.exogenous_columns:
            return None
        return exogenous_matrix(frame, self.exogenous_columns)

    def fit_and_forecast(
        self,
        train: pd.DataFrame,
        test: pd.DataFrame,
        horizon: Optional[int] = None
    ) -> ForecastSeries:
        """
        Fit on ``train`` and forecast the first ``horizon`` rows of ``test``.

        Args:
            train: Training feature table
            test: Test feature table
            horizon: Steps to forecast (default len(test))

        Returns:
            ForecastSeries aligned to the test rows
        """
        horizon = len(test) if horizon is None else horizon
        if horizon > len(test):
            raise ValueError(f"Horizon {horizon} exceeds the {len(test)} test rows")

        future = test.iloc[:horizon]

        self.fit(train, self.design_matrix(train, role='train'))
        forecast = self.forecast(
            horizon,
            self.design_matrix(future, role='test'),
            future['date'] if 'date' in future.columns else None
        )

        logger.info(f"✓ {self.name}: forecast {len(forecast)} steps")

        return forecast

    def _check_fitted(self) -> None:
        if not self.is_fitted:
            raise ValueError(f"{self.name} must be fitted before forecasting")

    def _series(
        self,
        values,
        future_dates: Optional[pd.Series] = None,
        extras: Optional[Dict[str, np.ndarray]] = None
    ) -> ForecastSeries:
        return ForecastSeries(
            model_name=self.name,
            values=values,
            target=self.target,
            dates=future_dates,
            extras=extras or {}
        )

    def save(self, filepath: str) -> str:
        """
        Save model to file.

        Args:
            filepath: Path to save model

        Returns:
            Path to saved file
        """
        if not self.is_fitted:
            raise ValueError("Model must be fitted before saving")

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        self.metadata['saved_at'] = datetime.now().isoformat()

        save_data = {
            'model': self.model,
            'params': self.params,
            'exogenous_columns': self.exogenous_columns,
            'metadata': self.metadata
        }

        joblib.dump(save_data, filepath)
        logger.info(f"Model saved to {filepath}")

        return str(filepath)

    @classmethod
    def load(cls, filepath: str) -> 'BaseForecaster':
        """
        Load model from file.

        Args:
            filepath: Path to model file

        Returns:
            Loaded model instance
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Model file not found: {filepath}")

        save_data = joblib.load(filepath)

        instance = cls(
            name=save_data['metadata'].get('name', 'loaded_model'),
            params=save_data['params'],
            exogenous_columns=save_data['exogenous_columns']
        )

        instance.model = save_data['model']
        instance.metadata = save_data['metadata']
        instance.is_fitted = True

        logger.info(f"Model loaded from {filepath}")

        return instance

    def __repr__(self) -> str:
        status = "fitted" if self.is_fitted else "not fitted"
        return f"{self.__class__.__name__}(name='{self.name}', {status})"
