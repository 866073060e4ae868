"""
Data loader module for the artifacts exchanged between pipeline stages.

Provides utilities for:
- Loading raw and processed tables
- Saving and loading per-model forecast series
- Caching loaded tables
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from ..exceptions import DataValidationError
from ..models.base import ForecastSeries

logger = logging.getLogger(__name__)


class DataLoader:
    """
    Artifact loading and management utilities.

    Handles loading raw and processed tables and per-model forecasts,
    with caching of the tables.
    """

    def __init__(self, config):
        """
        Initialize data loader.

        Args:
            config: Configuration object
        """
        self.config = config
        self._cache: Dict[str, pd.DataFrame] = {}

    @property
    def raw_file(self) -> Path:
        return self.config.raw_data_path / self.config.raw_filename

    @property
    def features_file(self) -> Path:
        return self.config.processed_data_path / self.config.features_filename

    def _read_table(self, filepath: Path, cache_key: str, use_cache: bool) -> pd.DataFrame:
        if use_cache and cache_key in self._cache:
            return self._cache[cache_key]

        if not filepath.exists():
            raise FileNotFoundError(f"Required artifact not found: {filepath}")

        df = pd.read_csv(filepath, parse_dates=['date'])
        if df.empty:
            raise DataValidationError(f"Artifact {filepath} contains no rows")

        if use_cache:
            self._cache[cache_key] = df

        return df

    def load_raw_data(self, use_cache: bool = True) -> pd.DataFrame:
        """
        Load the raw price table.

        Args:
            use_cache: Whether to use cached data

        Returns:
            PriceSeries DataFrame
        """
        return self._read_table(self.raw_file, 'raw', use_cache)

    def load_processed_data(self, use_cache: bool = True) -> pd.DataFrame:
        """
        Load the feature table.

        Args:
            use_cache: Whether to use cached data

        Returns:
            FeatureTable DataFrame
        """
        return self._read_table(self.features_file, 'processed', use_cache)

    def save_processed_data(self, df: pd.DataFrame) -> Path:
        """
        Save processed data to file.

        Args:
            df: Feature table

        Returns:
            Path to saved file
        """
        self.config.processed_data_path.mkdir(parents=True, exist_ok=True)

        filepath = self.features_file
        df.to_csv(filepath, index=False)
        self._cache.pop('processed', None)

        logger.info(f"Saved processed data to {filepath}")

        return filepath

    # ==========================================================================
    # Forecast artifacts
    # ==========================================================================

    def forecast_file(self, model_name: str) -> Path:
        return self.config.models_path / f"{model_name}_forecast.csv"

    def save_forecast(self, forecast: ForecastSeries) -> Path:
        """
        Persist a forecast series as CSV.

        Columns: date (if known), forecast, then one column per extra series.
        The target tag is stored in every row so the file is self-describing.
        """
        self.config.models_path.mkdir(parents=True, exist_ok=True)

        filepath = self.forecast_file(forecast.model_name)
        forecast.to_frame().to_csv(filepath, index=False)

        logger.debug(f"Saved {forecast.model_name} forecast to {filepath}")

        return filepath

    def load_forecast(self, model_name: str) -> Optional[ForecastSeries]:
        """
        Load a persisted forecast series.

        Returns:
            ForecastSeries, or None when the model produced no artifact
        """
        filepath = self.forecast_file(model_name)

        if not filepath.exists():
            logger.warning(f"No forecast artifact for {model_name}")
            return None

        df = pd.read_csv(filepath)
        if 'date' in df.columns:
            df['date'] = pd.to_datetime(df['date'])

        return ForecastSeries.from_frame(model_name, df)

    def load_forecasts(self, model_names) -> Dict[str, ForecastSeries]:
        """Load every available forecast among ``model_names``."""
        forecasts = {}

        for name in model_names:
            forecast = self.load_forecast(name)
            if forecast is not None:
                forecasts[name] = forecast

        return forecasts

    def discard_forecast(self, model_name: str) -> None:
        """Remove a stale forecast artifact left by an earlier run."""
        filepath = self.forecast_file(model_name)
        if filepath.exists():
            filepath.unlink()
            logger.info(f"Removed stale forecast {filepath}")

    @property
    def failures_file(self) -> Path:
        return self.config.models_path / "model_failures.csv"

    def save_failures(self, failures: Dict[str, str]) -> Path:
        """Record per-model failure messages of the last model stage."""
        self.config.models_path.mkdir(parents=True, exist_ok=True)

        frame = pd.DataFrame(
            {'model': list(failures.keys()), 'error': list(failures.values())}
        )
        frame.to_csv(self.failures_file, index=False)

        return self.failures_file

    def load_failures(self) -> Dict[str, str]:
        """Failure messages of the last model stage (empty if none recorded)."""
        if not self.failures_file.exists():
            return {}

        frame = pd.read_csv(self.failures_file)
        return dict(zip(frame['model'], frame['error'].fillna('').astype(str)))

    def clear_cache(self) -> None:
        """Clear data cache."""
        self._cache.clear()
        logger.debug("Cache cleared")

