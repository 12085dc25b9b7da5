"""tradewise_backtest package.

Expose commonly used functions for convenience."""

from .backtest import BacktestResult, run_backtest, trade_log_to_frame
from .config import ConfigurationError, CrossoverConfig, ThresholdConfig, TradeSignal
from .data_loader import build_price_series, load_price_series
from .indicators import sma

__all__ = [
    "BacktestResult",
    "ConfigurationError",
    "CrossoverConfig",
    "ThresholdConfig",
    "TradeSignal",
    "build_price_series",
    "load_price_series",
    "run_backtest",
    "sma",
    "trade_log_to_frame",
]
