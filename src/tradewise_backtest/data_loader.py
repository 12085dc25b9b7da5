"""Functions for building validated price series.

A price series is a ``pandas.Series`` of floats named ``price`` and indexed by
a ``DatetimeIndex`` named ``timestamp``. Timestamps must be non-decreasing and
prices must be finite and non-negative. Series may be empty.

The :func:`load_price_series` utility reads strictly from a local CSV file and
normalizes all column names to ``snake_case``. Fetching data from a remote
market data provider is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Tuple, Union

import numpy
import pandas

LOGGER = logging.getLogger(__name__)

PRICE_SERIES_NAME = "price"
TIMESTAMP_INDEX_NAME = "timestamp"


@dataclass(frozen=True)
class PricePoint:
    """Single observation of an asset price."""

    timestamp: pandas.Timestamp
    price: float


def _normalize_columns(frame: pandas.DataFrame) -> pandas.DataFrame:
    """Return ``frame`` with flattened, snake_case column names."""
    if isinstance(frame.columns, pandas.MultiIndex):
        frame.columns = frame.columns.get_level_values(0)
    frame.columns = [
        str(column_name).strip().lower().replace(" ", "_")
        for column_name in frame.columns
    ]
    return frame


def validate_price_series(price_series: pandas.Series) -> pandas.Series:
    """Check the ordering and value invariants of ``price_series``.

    Parameters
    ----------
    price_series: pandas.Series
        Candidate price series indexed by timestamps.

    Returns
    -------
    pandas.Series
        The same series, for call chaining.

    Raises
    ------
    ValueError
        If the index is not a ``DatetimeIndex``, timestamps decrease anywhere,
        or any price is negative or not finite.
    """
    if not isinstance(price_series.index, pandas.DatetimeIndex):
        raise ValueError("Price series must be indexed by timestamps")
    if not price_series.index.is_monotonic_increasing:
        raise ValueError("Price series timestamps must be non-decreasing")
    price_values = price_series.to_numpy(dtype=float)
    if not numpy.isfinite(price_values).all():
        raise ValueError("Price series contains missing or non-finite prices")
    if (price_values < 0).any():
        raise ValueError("Price series contains negative prices")
    return price_series


def build_price_series(
    price_points: Iterable[Union[PricePoint, Tuple[Any, float]]],
) -> pandas.Series:
    """Create a validated price series from individual observations.

    Parameters
    ----------
    price_points: Iterable[PricePoint | tuple]
        Observations in time order. Each item is a :class:`PricePoint` or a
        ``(timestamp, price)`` pair; timestamps may be anything accepted by
        :func:`pandas.Timestamp`.

    Returns
    -------
    pandas.Series
        Float series named ``price`` indexed by ``timestamp``.

    Raises
    ------
    ValueError
        If the observations violate the price series invariants.
    """
    timestamp_list = []
    price_list = []
    for price_point in price_points:
        if isinstance(price_point, PricePoint):
            timestamp_value, price_value = price_point.timestamp, price_point.price
        else:
            timestamp_value, price_value = price_point
        timestamp_list.append(pandas.Timestamp(timestamp_value))
        price_list.append(float(price_value))
    price_series = pandas.Series(
        price_list,
        index=pandas.DatetimeIndex(timestamp_list, name=TIMESTAMP_INDEX_NAME),
        name=PRICE_SERIES_NAME,
        dtype=float,
    )
    return validate_price_series(price_series)


def load_price_series(
    csv_path: Path,
    start: str | None = None,
    end: str | None = None,
    price_column: str = PRICE_SERIES_NAME,
) -> pandas.Series:
    """Load a price series strictly from a local CSV file.

    Parameters
    ----------
    csv_path: Path
        CSV file whose first column holds timestamps.
    start: str | None, optional
        Inclusive start date (``YYYY-MM-DD``). No lower bound when ``None``.
    end: str | None, optional
        Inclusive end date (``YYYY-MM-DD``). No upper bound when ``None``.
    price_column: str, default "price"
        Column holding the prices, matched after ``snake_case`` normalization.

    Returns
    -------
    pandas.Series
        Validated price series sliced to ``[start, end]``.

    Raises
    ------
    ValueError
        If ``start`` is after ``end``, the price column is missing, or the
        data violates the price series invariants.
    """
    start_timestamp = pandas.Timestamp(start) if start is not None else None
    end_timestamp = pandas.Timestamp(end) if end is not None else None
    if (
        start_timestamp is not None
        and end_timestamp is not None
        and start_timestamp > end_timestamp
    ):
        raise ValueError(f"Start date {start} is after end date {end}")

    frame = pandas.read_csv(csv_path, index_col=0, parse_dates=True)
    frame = _normalize_columns(frame)
    normalized_price_column = price_column.strip().lower().replace(" ", "_")
    if normalized_price_column not in frame.columns:
        raise ValueError(
            f"Column '{price_column}' not found in {csv_path}; "
            f"available columns: {', '.join(frame.columns)}"
        )
    price_series = frame[normalized_price_column].astype(float)
    price_series.index = pandas.DatetimeIndex(
        price_series.index, name=TIMESTAMP_INDEX_NAME
    )
    price_series.name = PRICE_SERIES_NAME
    validate_price_series(price_series)

    if start_timestamp is not None:
        price_series = price_series.loc[price_series.index >= start_timestamp]
    if end_timestamp is not None:
        price_series = price_series.loc[price_series.index <= end_timestamp]
    LOGGER.info(
        "Loaded %d prices from %s", len(price_series), csv_path
    )
    return price_series
