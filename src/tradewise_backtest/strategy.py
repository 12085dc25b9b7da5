"""Strategy engines that replay a price series and decide when to trade.

Both engines walk the series once with a two-state machine (flat or long) and
delegate cash and unit bookkeeping to :mod:`tradewise_backtest.simulator`.
Degenerate inputs never raise; they produce an outcome without trades and an
informational status message instead.

The engines count trades differently. The crossover engine counts every row
of the trade log, while the threshold engine counts only buys, so a buy and
its matching sell form a single round-trip trade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import pandas

from .config import CrossoverConfig, ThresholdConfig, TradeSignal
from .indicators import sma
from .simulator import (
    PortfolioState,
    TradeKind,
    TradeRecord,
    execute_buy,
    execute_sell,
    is_tradable_price,
    portfolio_value,
)

LOGGER = logging.getLogger(__name__)

END_OF_PERIOD_REASON = "Position closed at end of period"
NO_PRICE_DATA_MESSAGE = "No price data available for the selected period."


@dataclass(frozen=True)
class EngineOutcome:
    """Final portfolio and trade log produced by one engine run."""

    final_state: PortfolioState
    final_value: float
    trade_log: Tuple[TradeRecord, ...]
    trade_count: int
    status_message: str | None = None
    price_frame: pandas.DataFrame | None = field(default=None, compare=False)


def _idle_outcome(
    initial_capital: float,
    status_message: str,
    price_frame: pandas.DataFrame | None = None,
) -> EngineOutcome:
    return EngineOutcome(
        final_state=PortfolioState(cash=initial_capital),
        final_value=initial_capital,
        trade_log=(),
        trade_count=0,
        status_message=status_message,
        price_frame=price_frame,
    )


def _close_at_end(
    state: PortfolioState,
    trade_log: List[TradeRecord],
    price_series: pandas.Series,
) -> Tuple[PortfolioState, str | None]:
    """Sell a position still open after the last sample.

    Returns the final state and a status message when the position could not
    be closed because the last price is not tradable.
    """
    if not state.is_open:
        return state, None
    last_price = float(price_series.iloc[-1])
    last_timestamp = price_series.index[-1]
    if not is_tradable_price(last_price):
        LOGGER.warning(
            "Final price %s is not tradable; position left open", last_price
        )
        return state, (
            f"Position could not be closed at the end of the period because "
            f"the final price was {last_price}."
        )
    state, trade_record = execute_sell(
        state, last_price, last_timestamp, END_OF_PERIOD_REASON
    )
    trade_log.append(trade_record)
    return state, None


def _final_value(state: PortfolioState, price_series: pandas.Series) -> float:
    if price_series.empty:
        return state.cash
    return portfolio_value(state, float(price_series.iloc[-1]))


def run_crossover_strategy(
    config: CrossoverConfig, price_series: pandas.Series
) -> EngineOutcome:
    """Trade on crossings of a short and a long simple moving average.

    A buy happens when the short average moves from at or below the long
    average on the previous sample to strictly above it on the current one.
    A sell happens on the mirror-image crossing. Equal averages on both
    samples are not a crossing. The first sample is never evaluated because
    it has no predecessor, and samples where either average is undefined are
    skipped. An open position is sold at the last price when the walk ends.

    Parameters
    ----------
    config: CrossoverConfig
        Moving average windows and initial capital.
    price_series: pandas.Series
        Validated price series, already limited to the backtest period.

    Returns
    -------
    EngineOutcome
        Outcome whose ``trade_count`` counts every row of the trade log. When
        the series is shorter than ``long_window`` no trading takes place and
        ``status_message`` names both the available and required counts.
    """
    price_count = len(price_series)
    if price_count < config.long_window:
        LOGGER.info(
            "Skipping crossover run: %d prices for a %d-period long average",
            price_count,
            config.long_window,
        )
        return _idle_outcome(
            config.initial_capital,
            f"Not enough historical data: {price_count} prices available but "
            f"the long moving average needs {config.long_window}. Try a wider "
            "date range or a shorter long window.",
        )

    short_average_series = sma(price_series, config.short_window)
    long_average_series = sma(price_series, config.long_window)
    price_values = price_series.to_numpy(dtype=float)
    short_values = short_average_series.to_numpy(dtype=float)
    long_values = long_average_series.to_numpy(dtype=float)
    price_frame = pandas.DataFrame(
        {"price": price_values, "short_ma": short_values, "long_ma": long_values},
        index=price_series.index,
    )

    state = PortfolioState(cash=config.initial_capital)
    trade_log: List[TradeRecord] = []
    for row_index in range(1, price_count):
        previous_short = short_values[row_index - 1]
        previous_long = long_values[row_index - 1]
        current_short = short_values[row_index]
        current_long = long_values[row_index]
        if pandas.isna(
            [previous_short, previous_long, current_short, current_long]
        ).any():
            continue

        crossed_above = previous_short <= previous_long and current_short > current_long
        crossed_below = previous_short >= previous_long and current_short < current_long
        if not (
            (crossed_above and not state.is_open)
            or (crossed_below and state.is_open)
        ):
            continue
        current_price = float(price_values[row_index])
        current_timestamp = price_series.index[row_index]
        if not is_tradable_price(current_price):
            LOGGER.debug(
                "Skipping crossover at %s: price %s is not tradable",
                current_timestamp,
                current_price,
            )
            continue
        if not state.is_open:
            state, trade_record = execute_buy(
                state,
                current_price,
                current_timestamp,
                f"Short MA ({current_short:.2f}) crossed above "
                f"Long MA ({current_long:.2f})",
            )
        else:
            state, trade_record = execute_sell(
                state,
                current_price,
                current_timestamp,
                f"Short MA ({current_short:.2f}) crossed below "
                f"Long MA ({current_long:.2f})",
            )
        LOGGER.debug(
            "%s %s units at %s on %s",
            trade_record.kind.value,
            trade_record.quantity,
            current_price,
            current_timestamp,
        )
        trade_log.append(trade_record)

    state, status_message = _close_at_end(state, trade_log, price_series)
    if not trade_log:
        status_message = (
            "No moving average crossover occurred in the selected period, "
            "so no trades were made."
        )
    return EngineOutcome(
        final_state=state,
        final_value=_final_value(state, price_series),
        trade_log=tuple(trade_log),
        trade_count=len(trade_log),
        status_message=status_message,
        price_frame=price_frame,
    )


def _threshold_precondition_message(config: ThresholdConfig) -> str | None:
    """Return why ``config`` cannot be traded, or ``None`` when it can."""
    if (
        config.signal is None
        or config.entry_price is None
        or config.exit_price is None
    ):
        return (
            "Backtest not run: the recommendation is missing its signal or "
            "its entry and exit prices."
        )
    if config.signal == TradeSignal.SELL:
        return (
            "Backtest not run: the signal is Sell, and this simulation only "
            "opens long positions."
        )
    if config.signal == TradeSignal.HOLD:
        return "Backtest not run: the signal is Hold, so no position is opened."
    if config.signal != TradeSignal.BUY:
        return (
            f"Backtest not run: the signal '{config.signal}' is not a "
            "recognized trading signal."
        )
    return None


def run_threshold_strategy(
    config: ThresholdConfig, price_series: pandas.Series
) -> EngineOutcome:
    """Trade when the price reaches fixed entry and exit levels.

    Every sample is inspected. While flat, a price at or below
    ``entry_price`` opens a position; while long, a price at or above
    ``exit_price`` closes it. A sample triggers at most one transition. An
    open position is sold at the last price when the walk ends.

    Only a ``Buy`` signal with both prices present is traded. Missing values
    and ``Sell``, ``Hold`` or unrecognized signals each produce their own
    status message without any trades.

    Returns
    -------
    EngineOutcome
        Outcome whose ``trade_count`` counts buys only, one per round trip.
    """
    precondition_message = _threshold_precondition_message(config)
    if precondition_message is not None:
        LOGGER.info("Skipping threshold run: %s", precondition_message)
        return _idle_outcome(config.initial_capital, precondition_message)
    price_frame = pandas.DataFrame(
        {"price": price_series.to_numpy(dtype=float)}, index=price_series.index
    )
    if price_series.empty:
        return _idle_outcome(
            config.initial_capital, NO_PRICE_DATA_MESSAGE, price_frame
        )

    state = PortfolioState(cash=config.initial_capital)
    trade_log: List[TradeRecord] = []
    entry_level_reached = False
    for current_timestamp, current_price in price_series.items():
        current_price = float(current_price)
        if not state.is_open:
            if current_price > config.entry_price:
                continue
            entry_level_reached = True
            if not is_tradable_price(current_price):
                LOGGER.debug(
                    "Skipping entry at %s: price %s is not tradable",
                    current_timestamp,
                    current_price,
                )
                continue
            state, trade_record = execute_buy(
                state,
                current_price,
                current_timestamp,
                f"Price ({current_price:.2f}) at or below entry price "
                f"({config.entry_price:.2f})",
            )
        elif state.is_open:
            if current_price < config.exit_price:
                continue
            state, trade_record = execute_sell(
                state,
                current_price,
                current_timestamp,
                f"Price ({current_price:.2f}) at or above exit price "
                f"({config.exit_price:.2f})",
            )
        LOGGER.debug(
            "%s %s units at %s on %s",
            trade_record.kind.value,
            trade_record.quantity,
            current_price,
            current_timestamp,
        )
        trade_log.append(trade_record)

    state, status_message = _close_at_end(state, trade_log, price_series)
    if not trade_log and entry_level_reached:
        status_message = (
            f"The price reached the entry price of {config.entry_price:.2f} "
            "only at untradable prices, so no trades were made."
        )
    elif not trade_log:
        status_message = (
            f"The price never reached the entry price of "
            f"{config.entry_price:.2f}, so no trades were made."
        )
    buy_count = sum(
        1 for trade_record in trade_log if trade_record.kind == TradeKind.BUY
    )
    return EngineOutcome(
        final_state=state,
        final_value=_final_value(state, price_series),
        trade_log=tuple(trade_log),
        trade_count=buy_count,
        status_message=status_message,
        price_frame=price_frame,
    )
