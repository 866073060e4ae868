"""
Feature engineering pipeline orchestration.

Turns the raw PriceSeries into the FeatureTable consumed by every
model adapter.
"""

import logging
from typing import List, Optional

import pandas as pd

from .technical import TechnicalIndicators
from ..data.validator import DataValidator

logger = logging.getLogger(__name__)


class FeaturePipeline:
    """
    Complete feature engineering pipeline.

    Orchestrates:
    - Input validation (the raw table must already be date-ordered)
    - Technical indicator calculation
    - Removal of rows without enough lookback history
    - Output validation
    """

    def __init__(self, config):
        """
        Initialize feature pipeline.

        Args:
            config: Configuration object
        """
        self.config = config
        self.feature_config = config.feature_config
        self.validator = DataValidator()

    @property
    def feature_columns(self) -> List[str]:
        """Names of the derived columns, in creation order."""
        return list(DataValidator.FEATURE_COLUMNS)

    def create_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Create all features from raw data.

        Args:
            df: Raw PriceSeries DataFrame

        Returns:
            FeatureTable with every derived column populated
        """
        logger.info(f"Creating features for {len(df)} rows...")

        # Reordering here would hide a broken ingest; validation rejects it instead
        self.validator.validate(df, data_type='raw', raise_on_failure=True)

        df = TechnicalIndicators.add_all_indicators(
            df,
            macd_fast=self.feature_config.macd_fast,
            macd_slow=self.feature_config.macd_slow,
            macd_signal=self.feature_config.macd_signal,
            macd_percent=self.feature_config.macd_percent
        )

        initial_rows = len(df)
        df = df.dropna(subset=self.feature_columns).reset_index(drop=True)
        removed = initial_rows - len(df)

        if removed > 0:
            logger.info(f"Removed {removed} rows without full lookback history ({removed/initial_rows*100:.1f}%)")

        self.validator.validate(df, data_type='processed', raise_on_failure=True)

        logger.info(f"Feature engineering complete: {len(df)} rows, {len(df.columns)} columns")

        return df

    def run(self, loader, raw: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """
        Build the FeatureTable from the stored raw table and persist it.

        Args:
            loader: DataLoader used for reading and writing artifacts
            raw: Raw table (default: load from disk)

        Returns:
            FeatureTable
        """
        if raw is None:
            raw = loader.load_raw_data(use_cache=False)

        features = self.create_features(raw)
        loader.save_processed_data(features)

        return features
