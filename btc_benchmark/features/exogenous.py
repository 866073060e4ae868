"""
Exogenous regressor matrices.

Built from a feature table, row-aligned with it, columns in the
requested order.
"""

from typing import List, Optional

import numpy as np
import pandas as pd

EXOGENOUS_COLUMNS = ['rsi_14', 'sma_20', 'sma_50', 'macd', 'macd_signal', 'volume']


def exogenous_matrix(
    table: pd.DataFrame,
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Select the regressor columns of a feature table.

    Args:
        table: Feature table (not modified)
        columns: Subset of EXOGENOUS_COLUMNS, default all

    Returns:
        Float DataFrame sharing the table's index
    """
    columns = list(columns) if columns is not None else list(EXOGENOUS_COLUMNS)

    unknown = [c for c in columns if c not in EXOGENOUS_COLUMNS]
    if unknown:
        raise ValueError(f"Not an exogenous regressor: {unknown}")

    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise KeyError(f"Feature table lacks regressor columns: {missing}")

    return table.loc[:, columns].astype(float)


def transform_volume(matrix: pd.DataFrame, method: str = "none") -> pd.DataFrame:
    """
    Optionally compress the volume column.

    ``none`` leaves raw volume next to normalized indicators.
    ``log`` applies log1p.
    """
    if method == "none" or 'volume' not in matrix.columns:
        return matrix

    if method != "log":
        raise ValueError(f"Unknown volume transform: {method}")

    matrix = matrix.copy()
    matrix['volume'] = np.log1p(matrix['volume'])
    return matrix
