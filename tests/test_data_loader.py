"""Tests for price series construction and CSV loading."""

import os
import sys
from pathlib import Path

import numpy
import pandas
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from tradewise_backtest.data_loader import (
    PricePoint,
    build_price_series,
    load_price_series,
    validate_price_series,
)


def write_price_csv(tmp_path: Path) -> Path:
    csv_content = (
        "Date,Close,Volume\n"
        "2024-01-01,10.0,100\n"
        "2024-01-02,11.0,100\n"
        "2024-01-03,12.0,100\n"
        "2024-01-04,13.0,100\n"
    )
    csv_path = tmp_path / "prices.csv"
    csv_path.write_text(csv_content, encoding="utf-8")
    return csv_path


def test_build_price_series_from_tuples_and_points() -> None:
    price_series = build_price_series(
        [
            ("2024-01-01", 10),
            PricePoint(timestamp=pandas.Timestamp("2024-01-02"), price=11.5),
        ]
    )
    assert price_series.name == "price"
    assert price_series.index.name == "timestamp"
    assert price_series.dtype == float
    assert list(price_series) == [10.0, 11.5]
    assert price_series.index[1] == pandas.Timestamp("2024-01-02")


def test_build_price_series_accepts_empty_input() -> None:
    price_series = build_price_series([])
    assert price_series.empty
    assert isinstance(price_series.index, pandas.DatetimeIndex)


def test_build_price_series_allows_repeated_timestamps() -> None:
    price_series = build_price_series(
        [("2024-01-01", 10.0), ("2024-01-01", 11.0), ("2024-01-02", 12.0)]
    )
    assert len(price_series) == 3


def test_build_price_series_rejects_decreasing_timestamps() -> None:
    with pytest.raises(ValueError, match="non-decreasing"):
        build_price_series([("2024-01-02", 10.0), ("2024-01-01", 11.0)])


def test_build_price_series_rejects_negative_prices() -> None:
    with pytest.raises(ValueError, match="negative"):
        build_price_series([("2024-01-01", 10.0), ("2024-01-02", -1.0)])


def test_build_price_series_rejects_missing_prices() -> None:
    with pytest.raises(ValueError, match="non-finite"):
        build_price_series([("2024-01-01", numpy.nan)])


def test_build_price_series_allows_zero_prices() -> None:
    price_series = build_price_series([("2024-01-01", 0.0)])
    assert price_series.iloc[0] == 0.0


def test_validate_price_series_requires_timestamp_index() -> None:
    with pytest.raises(ValueError, match="timestamps"):
        validate_price_series(pandas.Series([1.0, 2.0]))


def test_load_price_series_reads_selected_column(tmp_path: Path) -> None:
    csv_path = write_price_csv(tmp_path)
    price_series = load_price_series(csv_path, price_column="Close")
    assert price_series.name == "price"
    assert price_series.index.name == "timestamp"
    assert list(price_series) == [10.0, 11.0, 12.0, 13.0]
    assert list(price_series.index) == list(
        pandas.date_range("2024-01-01", periods=4, freq="D")
    )


def test_load_price_series_slices_inclusive_range(tmp_path: Path) -> None:
    csv_path = write_price_csv(tmp_path)
    price_series = load_price_series(
        csv_path, start="2024-01-02", end="2024-01-03", price_column="close"
    )
    assert list(price_series) == [11.0, 12.0]


def test_load_price_series_rejects_missing_column(tmp_path: Path) -> None:
    csv_path = write_price_csv(tmp_path)
    with pytest.raises(ValueError, match="not found"):
        load_price_series(csv_path, price_column="adj_close")


def test_load_price_series_rejects_reversed_range(tmp_path: Path) -> None:
    csv_path = write_price_csv(tmp_path)
    with pytest.raises(ValueError, match="after end date"):
        load_price_series(
            csv_path, start="2024-01-03", end="2024-01-01", price_column="close"
        )


def test_load_price_series_rejects_unsorted_file(tmp_path: Path) -> None:
    csv_path = tmp_path / "unsorted.csv"
    csv_path.write_text(
        "date,price\n2024-01-02,10.0\n2024-01-01,11.0\n", encoding="utf-8"
    )
    with pytest.raises(ValueError, match="non-decreasing"):
        load_price_series(csv_path)
