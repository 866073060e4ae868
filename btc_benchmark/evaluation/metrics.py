"""
Metrics calculation module for model evaluation.

Provides:
- Point-forecast error metrics (RMSE, MAE) over defined entries only
- Model comparison with rankings
"""

import logging
from typing import Dict, Union

import pandas as pd
import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

logger = logging.getLogger(__name__)


def calculate_metrics(
    y_true: Union[pd.Series, np.ndarray],
    y_pred: Union[pd.Series, np.ndarray]
) -> Dict[str, float]:
    """
    Calculate regression metrics where both arrays are defined.

    Args:
        y_true: True target values
        y_pred: Predicted values (NaN marks an uncovered step)

    Returns:
        Dictionary with 'rmse', 'mae' and 'n_points'
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: {y_true.shape} actuals vs {y_pred.shape} predictions")

    # Remove any NaN values
    mask = ~(np.isnan(y_true) | np.isnan(y_pred))
    y_true = y_true[mask]
    y_pred = y_pred[mask]

    if len(y_true) == 0:
        return {'rmse': np.nan, 'mae': np.nan, 'n_points': 0}

    mae = mean_absolute_error(y_true, y_pred)
    rmse = np.sqrt(mean_squared_error(y_true, y_pred))

    return {
        'rmse': float(rmse),
        'mae': float(mae),
        'n_points': int(len(y_true))
    }


def compare_models(
    results: Dict[str, Dict[str, float]]
) -> pd.DataFrame:
    """
    Compare metrics across multiple models.

    Args:
        results: Dictionary mapping model names to metrics

    Returns:
        DataFrame comparison, lower error ranks first
    """
    comparison = pd.DataFrame(results).T
    comparison.index.name = 'model'

    for col in ['rmse', 'mae']:
        if col in comparison.columns:
            comparison[f'{col}_rank'] = comparison[col].astype(float).rank(ascending=True)

    return comparison
