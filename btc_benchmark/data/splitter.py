"""
Chronological train/test splitting.

The split point is floor(train_fraction * N). Rows are never reordered,
so every training row precedes every test row.
"""

import logging
import math
from dataclasses import dataclass

import pandas as pd

from ..exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChronologicalSplit:
    """A training prefix and a test suffix of one feature table."""
    train: pd.DataFrame
    test: pd.DataFrame
    split_index: int

    @property
    def horizon(self) -> int:
        """Number of steps every model must forecast."""
        return len(self.test)

    @property
    def test_dates(self) -> pd.Series:
        return self.test['date']

    @property
    def actuals(self) -> pd.Series:
        return self.test['close']


def compute_split_index(n_rows: int, train_fraction: float) -> int:
    """Index of the first test row for a table of ``n_rows`` rows."""
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    return int(math.floor(train_fraction * n_rows))


def chronological_split(
    table: pd.DataFrame,
    train_fraction: float = 0.8
) -> ChronologicalSplit:
    """
    Split a feature table into a training prefix and a test suffix.

    Args:
        table: Time-ordered feature table
        train_fraction: Share of rows used for training

    Returns:
        ChronologicalSplit with re-indexed train and test frames

    Raises:
        InsufficientDataError: If either side of the split would be empty
    """
    n_rows = len(table)
    split_index = compute_split_index(n_rows, train_fraction)

    if split_index == 0 or split_index == n_rows:
        raise InsufficientDataError(
            f"Split of {n_rows} rows at fraction {train_fraction} "
            f"leaves an empty {'train' if split_index == 0 else 'test'} set"
        )

    train = table.iloc[:split_index].reset_index(drop=True)
    test = table.iloc[split_index:].reset_index(drop=True)

    logger.info(f"Data split into {len(train)} train and {len(test)} test samples")

    return ChronologicalSplit(train=train, test=test, split_index=split_index)
