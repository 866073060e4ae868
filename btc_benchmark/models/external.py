"""
Cross-environment hand-off for externally trained models (LSTM, Hybrid).

The networks are trained in a separate runtime. This module writes the
inputs that runtime needs and reads back its predictions, which arrive
keyed by row order with no date column. A windowed model cannot predict
the first ``window_size`` test steps, so its file may hold fewer rows
than the horizon; those rows belong to the end of the test period.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .base import ForecastSeries
from ..exceptions import AlignmentError, ExternalArtifactMissingError
from ..features.exogenous import exogenous_matrix

logger = logging.getLogger(__name__)


def export_handoff(
    train: pd.DataFrame,
    test: pd.DataFrame,
    train_volatility,
    test_volatility,
    output_dir: Path,
    columns=None
) -> Dict[str, Path]:
    """
    Write the train and test feature matrices for the external trainer.

    Each file holds date, close, the exogenous regressors and the GARCH
    volatility column (fitted for train, forecast for test). The AR mean of
    the GARCH fit leaves the first train volatility empty.

    Returns:
        Mapping of 'train' / 'test' to the written paths
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {}
    for role, frame, volatility in (
        ('train', train, train_volatility),
        ('test', test, test_volatility)
    ):
        volatility = np.asarray(volatility, dtype=float)
        if len(volatility) != len(frame):
            raise ValueError(f"{len(volatility)} volatility values for {len(frame)} {role} rows")

        export = exogenous_matrix(frame, columns)
        export.insert(0, 'close', frame['close'].to_numpy())
        export.insert(0, 'date', frame['date'].to_numpy())
        export['volatility'] = volatility

        path = output_dir / f"{role}_features.csv"
        export.to_csv(path, index=False)
        paths[role] = path

        logger.info(f"Hand-off {role} matrix ({len(export)} rows) written to {path}")

    return paths


def load_external_forecast(
    path: Path,
    model_name: str,
    test_dates: pd.Series,
    column: Optional[str] = None,
    window_size: Optional[int] = None
) -> ForecastSeries:
    """
    Read an externally produced forecast and re-attach test dates.

    Args:
        path: CSV file with one predicted-value column
        model_name: Name the forecast is reported under
        test_dates: Dates of the full test period (length = horizon)
        column: Value column (default ``<model_name>_pred``, or the only column)
        window_size: Lookback window of the external model; when given the
            file must hold exactly ``horizon - window_size`` rows

    Returns:
        ForecastSeries dated with the last ``len(rows)`` test dates

    Raises:
        ExternalArtifactMissingError: The file does not exist
        AlignmentError: Row count exceeds the horizon or contradicts window_size
    """
    path = Path(path)
    if not path.exists():
        raise ExternalArtifactMissingError(f"External forecast for {model_name} not found: {path}")

    frame = pd.read_csv(path)
    column = column or f"{model_name}_pred"

    if column not in frame.columns:
        numeric = frame.select_dtypes(include=[np.number]).columns
        if len(numeric) != 1:
            raise KeyError(f"{path} has no '{column}' column and no single numeric column")
        column = numeric[0]

    values = frame[column].to_numpy(dtype=float)
    horizon = len(test_dates)

    if len(values) > horizon:
        raise AlignmentError(
            f"{model_name}: {len(values)} external predictions for a {horizon}-step horizon"
        )

    if window_size is not None and len(values) != horizon - window_size:
        raise AlignmentError(
            f"{model_name}: expected {horizon - window_size} rows for window size "
            f"{window_size}, got {len(values)}"
        )

    offset = horizon - len(values)
    dates = pd.DatetimeIndex(pd.to_datetime(test_dates))[offset:]

    logger.info(f"✓ Loaded {len(values)} {model_name} predictions (first {offset} test steps uncovered)")

    return ForecastSeries(model_name=model_name, values=values, target='close', dates=dates)
