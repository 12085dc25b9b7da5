"""Strategy configuration for backtest runs.

A strategy configuration is one of two variants:

- :class:`CrossoverConfig` for the rule-based moving-average crossover
  strategy, typically filled in from a form.
- :class:`ThresholdConfig` for an externally computed recommendation consisting
  of a directional signal plus target entry and exit prices.

Both variants share ``initial_capital`` and the informational ``start_time``,
``end_time`` and ``asset_id`` fields. The price series handed to a backtest is
assumed to be filtered to the date range already.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Union

import pandas

DEFAULT_INITIAL_CAPITAL = 1000.0
DEFAULT_SHORT_WINDOW = 20
DEFAULT_LONG_WINDOW = 50


class ConfigurationError(ValueError):
    """Raised when a strategy configuration cannot be simulated."""


class TradeSignal(str, Enum):
    """Directional signal supplied with a threshold configuration."""

    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"


def parse_signal(raw_signal: str | None) -> TradeSignal | str | None:
    """Normalize a free-form signal to :class:`TradeSignal`.

    Matching is case-insensitive and ignores surrounding whitespace. Values
    that are not a known signal are returned unchanged so that the threshold
    engine can report them; blank values become ``None``.
    """
    if raw_signal is None or isinstance(raw_signal, TradeSignal):
        return raw_signal
    stripped_signal = str(raw_signal).strip()
    if not stripped_signal:
        return None
    for trade_signal in TradeSignal:
        if stripped_signal.lower() == trade_signal.value.lower():
            return trade_signal
    return stripped_signal


def _check_initial_capital(initial_capital: float) -> None:
    if isinstance(initial_capital, bool) or not isinstance(
        initial_capital, numbers.Real
    ):
        raise ConfigurationError("initial_capital must be a number")
    if not math.isfinite(initial_capital) or initial_capital <= 0:
        raise ConfigurationError(
            f"initial_capital must be positive, got {initial_capital}"
        )


def _check_time_range(
    start_time: pandas.Timestamp | None, end_time: pandas.Timestamp | None
) -> None:
    if start_time is None or end_time is None:
        return
    if pandas.Timestamp(start_time) > pandas.Timestamp(end_time):
        raise ConfigurationError(
            f"start_time {start_time} is after end_time {end_time}"
        )


def _check_window(window_name: str, window_size: int) -> None:
    if isinstance(window_size, bool) or not isinstance(
        window_size, numbers.Integral
    ):
        raise ConfigurationError(f"{window_name} must be an integer")
    if window_size <= 0:
        raise ConfigurationError(
            f"{window_name} must be positive, got {window_size}"
        )


@dataclass(frozen=True)
class CrossoverConfig:
    """Parameters for the moving-average crossover strategy."""

    initial_capital: float
    short_window: int
    long_window: int
    start_time: pandas.Timestamp | None = None
    end_time: pandas.Timestamp | None = None
    asset_id: str | None = None

    def __post_init__(self) -> None:
        _check_initial_capital(self.initial_capital)
        _check_window("short_window", self.short_window)
        _check_window("long_window", self.long_window)
        if self.short_window >= self.long_window:
            raise ConfigurationError(
                "short_window must be smaller than long_window, got "
                f"{self.short_window} and {self.long_window}"
            )
        _check_time_range(self.start_time, self.end_time)


@dataclass(frozen=True)
class ThresholdConfig:
    """Parameters for the entry/exit price threshold strategy.

    ``signal``, ``entry_price`` and ``exit_price`` may be missing. The engine
    reports such configurations through a status message instead of trading,
    so they are accepted here.
    """

    initial_capital: float
    signal: TradeSignal | str | None
    entry_price: float | None = None
    exit_price: float | None = None
    start_time: pandas.Timestamp | None = None
    end_time: pandas.Timestamp | None = None
    asset_id: str | None = None

    def __post_init__(self) -> None:
        _check_initial_capital(self.initial_capital)
        object.__setattr__(self, "signal", parse_signal(self.signal))
        for price_name in ("entry_price", "exit_price"):
            price_value = getattr(self, price_name)
            if price_value is None:
                continue
            if isinstance(price_value, bool) or not isinstance(
                price_value, numbers.Real
            ):
                raise ConfigurationError(f"{price_name} must be a number")
            if not math.isfinite(price_value) or price_value <= 0:
                raise ConfigurationError(
                    f"{price_name} must be a positive number, got {price_value}"
                )
        _check_time_range(self.start_time, self.end_time)


StrategyConfiguration = Union[CrossoverConfig, ThresholdConfig]


def validate_configuration(config: StrategyConfiguration) -> StrategyConfiguration:
    """Confirm that ``config`` is a supported strategy configuration.

    Field-level checks happen when the configuration is constructed; this
    guards the dispatch in :func:`tradewise_backtest.backtest.run_backtest`
    against objects that are not one of the two variants.

    Raises
    ------
    ConfigurationError
        If ``config`` is neither a :class:`CrossoverConfig` nor a
        :class:`ThresholdConfig`.
    """
    if not isinstance(config, (CrossoverConfig, ThresholdConfig)):
        raise ConfigurationError(
            f"Unsupported strategy configuration: {type(config).__name__}"
        )
    return config
