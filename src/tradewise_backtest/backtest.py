"""Run a configured strategy over a price series and summarize the outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Tuple

import pandas

from .config import (
    CrossoverConfig,
    StrategyConfiguration,
    ThresholdConfig,
    validate_configuration,
)
from .data_loader import validate_price_series
from .simulator import TradeRecord, buy_and_hold_for_series
from .strategy import EngineOutcome, run_crossover_strategy, run_threshold_strategy

LOGGER = logging.getLogger(__name__)

TRADE_LOG_COLUMNS = [
    "timestamp",
    "kind",
    "price",
    "quantity",
    "cash_after",
    "units_held_after",
    "reason",
]


@dataclass(frozen=True)
class BacktestResult:
    """Aggregate outcome of a single backtest run."""

    config: StrategyConfiguration
    final_value: float
    total_profit_loss: float
    profit_loss_percent: float
    trade_count: int
    trade_log: Tuple[TradeRecord, ...]
    buy_and_hold_percent: float | None = None
    status_message: str | None = None
    price_frame: pandas.DataFrame | None = field(default=None, compare=False)


def assemble_result(
    config: StrategyConfiguration,
    engine_outcome: EngineOutcome,
    buy_and_hold_percent: float | None,
) -> BacktestResult:
    """Combine an engine outcome and the benchmark into a result.

    Parameters
    ----------
    config: StrategyConfiguration
        Configuration the engine ran with.
    engine_outcome: EngineOutcome
        Final portfolio, trade log and trade count from the engine.
    buy_and_hold_percent: float | None
        Benchmark return over the same series.

    Returns
    -------
    BacktestResult
        Summary with profit and loss measured against ``initial_capital``.
    """
    initial_capital = config.initial_capital
    assert initial_capital > 0, "initial_capital must be positive"
    total_profit_loss = engine_outcome.final_value - initial_capital
    profit_loss_percent = total_profit_loss / initial_capital * 100
    return BacktestResult(
        config=config,
        final_value=engine_outcome.final_value,
        total_profit_loss=total_profit_loss,
        profit_loss_percent=profit_loss_percent,
        trade_count=engine_outcome.trade_count,
        trade_log=engine_outcome.trade_log,
        buy_and_hold_percent=buy_and_hold_percent,
        status_message=engine_outcome.status_message,
        price_frame=engine_outcome.price_frame,
    )


def run_backtest(
    config: StrategyConfiguration, price_series: pandas.Series
) -> BacktestResult:
    """Replay ``price_series`` with the strategy selected by ``config``.

    Parameters
    ----------
    config: StrategyConfiguration
        A :class:`CrossoverConfig` or :class:`ThresholdConfig`.
    price_series: pandas.Series
        Validated price series limited to the backtest period, as returned
        by :mod:`tradewise_backtest.data_loader`.

    Returns
    -------
    BacktestResult
        Result of the replay. Insufficient data and unusable signals yield a
        result without trades and with ``status_message`` set.

    Raises
    ------
    ConfigurationError
        If ``config`` is not a supported configuration variant.
    ValueError
        If ``price_series`` breaks the price series invariants checked by
        :func:`tradewise_backtest.data_loader.validate_price_series`.
    """
    validate_configuration(config)
    validate_price_series(price_series)
    if isinstance(config, CrossoverConfig):
        engine_outcome = run_crossover_strategy(config, price_series)
    elif isinstance(config, ThresholdConfig):
        engine_outcome = run_threshold_strategy(config, price_series)
    else:
        raise AssertionError(f"Unhandled configuration {config!r}")
    buy_and_hold_percent = buy_and_hold_for_series(
        config.initial_capital, price_series
    )
    result = assemble_result(config, engine_outcome, buy_and_hold_percent)
    LOGGER.info(
        "%s backtest finished: final value %.2f (%.2f%%), %d trades",
        type(config).__name__,
        result.final_value,
        result.profit_loss_percent,
        result.trade_count,
    )
    return result


def trade_log_to_frame(trade_log: Iterable[TradeRecord]) -> pandas.DataFrame:
    """Return the trade log as a data frame with one row per trade."""
    trade_record_list = [
        {
            "timestamp": trade_record.timestamp,
            "kind": trade_record.kind.value,
            "price": trade_record.price,
            "quantity": trade_record.quantity,
            "cash_after": trade_record.cash_after,
            "units_held_after": trade_record.units_held_after,
            "reason": trade_record.reason,
        }
        for trade_record in trade_log
    ]
    return pandas.DataFrame(trade_record_list, columns=TRADE_LOG_COLUMNS)
