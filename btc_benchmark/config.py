"""
Configuration management module.

Provides centralized configuration loading and validation.
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from .features.exogenous import EXOGENOUS_COLUMNS

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


@dataclass
class DataConfig:
    """Market data acquisition configuration."""
    symbol: str
    start_date: str
    end_date: Optional[str] = None
    min_data_points: int = 100


@dataclass
class FeatureConfig:
    """Technical indicator configuration."""
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    macd_percent: bool = True


@dataclass
class ModelConfig:
    """Model fitting configuration."""
    train_fraction: float
    exogenous_columns: List[str]
    enabled: List[str]
    timeout_seconds: Optional[float]
    arimax_params: Dict[str, Any] = field(default_factory=dict)
    prophet_params: Dict[str, Any] = field(default_factory=dict)
    prophet_regressors: List[str] = field(default_factory=list)
    var_params: Dict[str, Any] = field(default_factory=dict)
    garch_params: Dict[str, Any] = field(default_factory=dict)
    xgboost_params: Dict[str, Any] = field(default_factory=dict)
    volume_transform: str = "none"


@dataclass
class ExternalConfig:
    """Cross-environment (LSTM / Hybrid) artifact configuration."""
    models: Dict[str, Dict[str, str]]
    window_size: Optional[int] = None


class Config:
    """
    Central configuration manager.

    Loads configuration from YAML file and provides typed access
    to all settings with validation.
    """

    REQUIRED_SECTIONS = ['data', 'features', 'model', 'storage']

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file. Falls back to the
                BTC_BENCHMARK_CONFIG environment variable, then the default.
        """
        config_path = config_path or os.getenv('BTC_BENCHMARK_CONFIG', DEFAULT_CONFIG_PATH)
        self.config_path = Path(config_path)
        self._raw_config: Dict[str, Any] = {}
        self._load_config()
        self._setup_logging()
        self._validate_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            self._raw_config = yaml.safe_load(f) or {}

        logger.info(f"Configuration loaded from {self.config_path}")

    def _setup_logging(self) -> None:
        """Configure logging based on settings."""
        log_config = self._raw_config.get('logging', {})
        log_level = getattr(logging, log_config.get('level', 'INFO'))
        log_format = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        log_file = log_config.get('file', 'logs/pipeline.log')

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        # Configure root logger
        logging.basicConfig(
            level=log_level,
            format=log_format,
            handlers=handlers
        )

    def _validate_config(self) -> None:
        """Validate configuration values."""
        for section in self.REQUIRED_SECTIONS:
            if section not in self._raw_config:
                raise ValueError(f"Missing required config section: {section}")

        storage = self._raw_config['storage']
        for path_key in ['raw_path', 'processed_path', 'models_path', 'output_path']:
            if path_key not in storage:
                raise ValueError(f"Missing storage path: {path_key}")

        fraction = self.train_fraction
        if not 0 < fraction < 1:
            raise ValueError(f"model.train_fraction must be in (0, 1), got {fraction}")

        pinned = [k for k in ('rsi_period', 'sma_periods') if k in (self._raw_config['features'] or {})]
        if pinned:
            raise ValueError(
                f"features.{pinned[0]} is not configurable; the feature table "
                f"always carries rsi_14, sma_20 and sma_50"
            )

        unknown = [c for c in self.exogenous_columns if c not in EXOGENOUS_COLUMNS]
        if unknown:
            raise ValueError(f"Unknown exogenous columns: {unknown}")

        logger.info("Configuration validation passed")

    # ==========================================================================
    # Data Configuration
    # ==========================================================================

    @property
    def data_config(self) -> DataConfig:
        data = self._raw_config['data']
        return DataConfig(
            symbol=data.get('symbol', 'BTC-USD'),
            start_date=str(data.get('start_date', '2018-01-01')),
            end_date=data.get('end_date'),
            min_data_points=data.get('min_data_points', 100)
        )

    @property
    def symbol(self) -> str:
        return self.data_config.symbol

    # ==========================================================================
    # Storage Configuration
    # ==========================================================================

    @property
    def raw_data_path(self) -> Path:
        return Path(self._raw_config['storage']['raw_path'])

    @property
    def processed_data_path(self) -> Path:
        return Path(self._raw_config['storage']['processed_path'])

    @property
    def models_path(self) -> Path:
        return Path(self._raw_config['storage']['models_path'])

    @property
    def output_path(self) -> Path:
        return Path(self._raw_config['storage']['output_path'])

    @property
    def handoff_path(self) -> Path:
        return Path(self._raw_config['storage'].get('handoff_path', self.output_path / 'handoff'))

    @property
    def plots_path(self) -> Path:
        return Path(self._raw_config['storage'].get('plots_path', self.output_path / 'plots'))

    @property
    def raw_filename(self) -> str:
        return self._raw_config['storage'].get('raw_file', 'btc_raw.csv')

    @property
    def features_filename(self) -> str:
        return self._raw_config['storage'].get('features_file', 'btc_features.csv')

    @property
    def metrics_filename(self) -> str:
        return self._raw_config['storage'].get('metrics_file', 'model_metrics.csv')

    # ==========================================================================
    # Feature Configuration
    # ==========================================================================

    @property
    def feature_config(self) -> FeatureConfig:
        """Get feature engineering configuration."""
        feat = self._raw_config['features']
        macd = feat.get('macd', {})

        return FeatureConfig(
            macd_fast=macd.get('fast', 12),
            macd_slow=macd.get('slow', 26),
            macd_signal=macd.get('signal', 9),
            macd_percent=macd.get('percent', True)
        )

    # ==========================================================================
    # Model Configuration
    # ==========================================================================

    @property
    def model_config(self) -> ModelConfig:
        """Get model fitting configuration."""
        model = self._raw_config['model']
        prophet = dict(model.get('prophet', {}))
        regressors = prophet.pop('regressors', ['rsi_14', 'sma_20', 'sma_50', 'volume'])
        xgb = dict(model.get('xgboost', {}))
        volume_transform = xgb.pop('volume_transform', 'none')

        return ModelConfig(
            train_fraction=self.train_fraction,
            exogenous_columns=self.exogenous_columns,
            enabled=model.get('enabled', ['arimax', 'prophet', 'var', 'garch', 'xgboost']),
            timeout_seconds=model.get('timeout_seconds'),
            arimax_params=model.get('arimax', {}),
            prophet_params=prophet,
            prophet_regressors=regressors,
            var_params=model.get('var', {}),
            garch_params=model.get('garch', {}),
            xgboost_params=xgb,
            volume_transform=volume_transform
        )

    @property
    def train_fraction(self) -> float:
        return float(self._raw_config['model'].get('train_fraction', 0.8))

    @property
    def exogenous_columns(self) -> List[str]:
        return list(self._raw_config['model'].get('exogenous_columns', EXOGENOUS_COLUMNS))

    # ==========================================================================
    # External (cross-environment) Configuration
    # ==========================================================================

    @property
    def external_config(self) -> ExternalConfig:
        ext = self._raw_config.get('external', {})
        models = ext.get('models', {
            'lstm': {'file': 'lstm_predictions.csv', 'column': 'lstm_pred'},
            'hybrid': {'file': 'hybrid_predictions.csv', 'column': 'hybrid_pred'}
        })
        return ExternalConfig(models=models, window_size=ext.get('window_size'))

    # ==========================================================================
    # Evaluation Configuration
    # ==========================================================================

    @property
    def plots_enabled(self) -> bool:
        return self._raw_config.get('evaluation', {}).get('plots', True)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    def create_directories(self) -> None:
        """Create all required directories."""
        directories = [
            self.raw_data_path,
            self.processed_data_path,
            self.models_path,
            self.output_path,
            self.handoff_path,
            self.plots_path
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

        logger.info("All directories created")

    def to_dict(self) -> Dict[str, Any]:
        """Return raw configuration dictionary."""
        return self._raw_config.copy()

    def __repr__(self) -> str:
        return f"Config(path={self.config_path}, symbol={self.symbol})"


# Convenience function for loading config
def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file."""
    return Config(config_path)
