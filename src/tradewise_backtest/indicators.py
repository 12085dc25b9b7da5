"""Moving average calculations used by the crossover strategy.

Values that cannot be computed yet because of insufficient look-back are
returned as ``NaN`` so that the result always lines up with the input series.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy
import pandas


def sma(
    price_series: pandas.Series | Sequence[float], window_size: int
) -> pandas.Series:
    """Calculate the Simple Moving Average (SMA).

    Each entry is the mean of the prices in its own window, summed with
    :func:`math.fsum`. A running sum would carry rounding error from earlier
    windows, so two mathematically equal averages could compare unequal.

    Parameters
    ----------
    price_series: pandas.Series | Sequence[float]
        Series of prices. Plain sequences are converted to a series with a
        default integer index.
    window_size: int
        Number of periods to include in the moving average.

    Returns
    -------
    pandas.Series
        Simple moving average aligned with ``price_series``. Entries before
        index ``window_size - 1`` are ``NaN``. When ``window_size`` is not
        positive or exceeds the number of prices, every entry is ``NaN``;
        callers treat that as "not enough data" rather than as a failure.
    """
    if not isinstance(price_series, pandas.Series):
        price_series = pandas.Series(list(price_series), dtype=float)
    price_series = price_series.astype(float)
    if window_size <= 0 or window_size > len(price_series):
        return pandas.Series(
            numpy.full(len(price_series), numpy.nan),
            index=price_series.index,
            name=price_series.name,
        )
    return price_series.rolling(window=window_size).apply(
        lambda window_values: math.fsum(window_values) / window_size, raw=True
    )
