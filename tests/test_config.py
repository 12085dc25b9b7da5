"""Tests for strategy configuration validation."""

import os
import sys

import numpy
import pandas
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from tradewise_backtest.config import (
    ConfigurationError,
    CrossoverConfig,
    ThresholdConfig,
    TradeSignal,
    parse_signal,
    validate_configuration,
)


def test_crossover_config_accepts_valid_windows() -> None:
    crossover_config = CrossoverConfig(
        initial_capital=1000.0, short_window=5, long_window=20
    )
    assert crossover_config.short_window == 5
    assert crossover_config.long_window == 20
    assert validate_configuration(crossover_config) is crossover_config


@pytest.mark.parametrize(
    "short_window, long_window",
    [(20, 20), (30, 20), (0, 20), (-1, 20), (5, 0)],
)
def test_crossover_config_rejects_invalid_windows(
    short_window: int, long_window: int
) -> None:
    with pytest.raises(ConfigurationError):
        CrossoverConfig(
            initial_capital=1000.0,
            short_window=short_window,
            long_window=long_window,
        )


def test_crossover_config_rejects_non_integer_windows() -> None:
    with pytest.raises(ConfigurationError, match="integer"):
        CrossoverConfig(initial_capital=1000.0, short_window=2.5, long_window=10)
    with pytest.raises(ConfigurationError, match="integer"):
        CrossoverConfig(initial_capital=1000.0, short_window=True, long_window=10)


def test_crossover_config_accepts_numpy_integer_windows() -> None:
    crossover_config = CrossoverConfig(
        initial_capital=numpy.float64(1000.0),
        short_window=numpy.int64(2),
        long_window=numpy.int64(4),
    )
    assert crossover_config.short_window == 2
    assert crossover_config.long_window == 4


@pytest.mark.parametrize("initial_capital", [0.0, -100.0, float("inf"), float("nan")])
def test_configs_reject_unusable_initial_capital(initial_capital: float) -> None:
    with pytest.raises(ConfigurationError, match="initial_capital"):
        CrossoverConfig(
            initial_capital=initial_capital, short_window=2, long_window=4
        )
    with pytest.raises(ConfigurationError, match="initial_capital"):
        ThresholdConfig(initial_capital=initial_capital, signal="Buy")


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        CrossoverConfig(initial_capital=1000.0, short_window=10, long_window=5)


def test_configs_reject_reversed_time_range() -> None:
    with pytest.raises(ConfigurationError, match="after end_time"):
        CrossoverConfig(
            initial_capital=1000.0,
            short_window=2,
            long_window=4,
            start_time=pandas.Timestamp("2024-02-01"),
            end_time=pandas.Timestamp("2024-01-01"),
        )


def test_threshold_config_normalizes_signal() -> None:
    threshold_config = ThresholdConfig(
        initial_capital=1000.0, signal=" sell ", entry_price=90.0, exit_price=110.0
    )
    assert threshold_config.signal is TradeSignal.SELL


def test_threshold_config_accepts_missing_values() -> None:
    threshold_config = ThresholdConfig(initial_capital=1000.0, signal=None)
    assert threshold_config.signal is None
    assert threshold_config.entry_price is None
    assert threshold_config.exit_price is None


def test_threshold_config_rejects_non_positive_prices() -> None:
    with pytest.raises(ConfigurationError, match="entry_price"):
        ThresholdConfig(initial_capital=1000.0, signal="Buy", entry_price=-5.0)
    with pytest.raises(ConfigurationError, match="exit_price"):
        ThresholdConfig(
            initial_capital=1000.0, signal="Buy", entry_price=5.0, exit_price=0.0
        )


@pytest.mark.parametrize("price_value", ["100", True])
def test_threshold_config_rejects_non_numeric_prices(price_value: object) -> None:
    with pytest.raises(ConfigurationError, match="entry_price must be a number"):
        ThresholdConfig(initial_capital=1000.0, signal="Buy", entry_price=price_value)
    with pytest.raises(ConfigurationError, match="exit_price must be a number"):
        ThresholdConfig(
            initial_capital=1000.0,
            signal="Buy",
            entry_price=90.0,
            exit_price=price_value,
        )


def test_parse_signal_recognizes_known_values() -> None:
    assert parse_signal("Buy") is TradeSignal.BUY
    assert parse_signal("HOLD") is TradeSignal.HOLD
    assert parse_signal(TradeSignal.SELL) is TradeSignal.SELL


def test_parse_signal_keeps_unknown_values_and_blanks_become_none() -> None:
    assert parse_signal("Strong Buy") == "Strong Buy"
    assert parse_signal("   ") is None
    assert parse_signal(None) is None


def test_validate_configuration_rejects_other_objects() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported"):
        validate_configuration({"short_window": 5, "long_window": 20})
