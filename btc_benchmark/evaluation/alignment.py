"""
Forecast alignment onto the test horizon.

Every model's forecast is brought to exactly ``horizon`` entries before
scoring. A forecast that covers only the end of the test period (e.g. a
windowed network) is left-padded with NaN so its values stay matched to
the dates they were produced for.
"""

from typing import Union

import numpy as np

from ..exceptions import AlignmentError
from ..models.base import ForecastSeries


def align_forecast(
    forecast: Union[ForecastSeries, np.ndarray, list],
    horizon: int
) -> np.ndarray:
    """
    Place a forecast on a horizon of length ``horizon``.

    Args:
        forecast: ForecastSeries or 1-D array of point predictions
        horizon: Number of test steps

    Returns:
        Float array of length ``horizon``; the forecast occupies the tail

    Raises:
        AlignmentError: The forecast is longer than the horizon
    """
    if isinstance(forecast, ForecastSeries):
        values = forecast.values
    else:
        values = np.asarray(forecast, dtype=float).reshape(-1)

    if len(values) > horizon:
        raise AlignmentError(
            f"Forecast has {len(values)} values for a {horizon}-step horizon"
        )

    aligned = np.full(horizon, np.nan)
    if len(values):
        aligned[horizon - len(values):] = values

    return aligned
