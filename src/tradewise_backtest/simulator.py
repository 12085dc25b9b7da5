"""Portfolio bookkeeping shared by the strategy engines.

The simulator is all-in/all-out: a buy converts all cash to units and a sell
converts all units back to cash, without fees or slippage. Every call returns
a new :class:`PortfolioState` together with the :class:`TradeRecord` that
describes it, leaving the previous state untouched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple

import pandas


class TradeKind(str, Enum):
    """Direction of a recorded trade."""

    BUY = "Buy"
    SELL = "Sell"


@dataclass(frozen=True)
class PortfolioState:
    """Cash and holdings of a single simulation run."""

    cash: float
    units_held: float = 0.0
    is_open: bool = False


@dataclass(frozen=True)
class TradeRecord:
    """Record details for an executed trade."""

    timestamp: pandas.Timestamp
    kind: TradeKind
    price: float
    quantity: float
    cash_after: float
    units_held_after: float
    reason: str


def is_tradable_price(price: float) -> bool:
    """Return ``True`` when a trade may be executed at ``price``."""
    return math.isfinite(price) and price > 0


def portfolio_value(state: PortfolioState, price: float) -> float:
    """Return the cash plus the market value of held units at ``price``."""
    return state.cash + state.units_held * price


def execute_buy(
    state: PortfolioState,
    price: float,
    timestamp: pandas.Timestamp,
    reason: str,
) -> Tuple[PortfolioState, TradeRecord]:
    """Invest all available cash at ``price``.

    Parameters
    ----------
    state: PortfolioState
        Current flat portfolio.
    price: float
        Execution price per unit. Must be positive.
    timestamp: pandas.Timestamp
        Time of the trade.
    reason: str
        Human readable explanation stored with the trade.

    Returns
    -------
    tuple[PortfolioState, TradeRecord]
        Portfolio after the purchase and the trade that produced it.

    Raises
    ------
    ValueError
        If ``price`` is not tradable or a position is already open. Engines
        check both conditions before calling.
    """
    if not is_tradable_price(price):
        raise ValueError(f"Cannot buy at non-positive price {price}")
    if state.is_open:
        raise ValueError("Cannot buy while a position is already open")
    quantity = state.cash / price
    new_state = replace(state, cash=0.0, units_held=quantity, is_open=True)
    trade_record = TradeRecord(
        timestamp=timestamp,
        kind=TradeKind.BUY,
        price=price,
        quantity=quantity,
        cash_after=new_state.cash,
        units_held_after=new_state.units_held,
        reason=reason,
    )
    return new_state, trade_record


def execute_sell(
    state: PortfolioState,
    price: float,
    timestamp: pandas.Timestamp,
    reason: str,
) -> Tuple[PortfolioState, TradeRecord]:
    """Liquidate all held units at ``price``.

    Raises
    ------
    ValueError
        If ``price`` is not tradable or no position is open.
    """
    if not is_tradable_price(price):
        raise ValueError(f"Cannot sell at non-positive price {price}")
    if not state.is_open:
        raise ValueError("Cannot sell without an open position")
    quantity = state.units_held
    new_state = replace(
        state, cash=state.cash + quantity * price, units_held=0.0, is_open=False
    )
    trade_record = TradeRecord(
        timestamp=timestamp,
        kind=TradeKind.SELL,
        price=price,
        quantity=quantity,
        cash_after=new_state.cash,
        units_held_after=new_state.units_held,
        reason=reason,
    )
    return new_state, trade_record


def calculate_buy_and_hold_percentage(
    initial_capital: float,
    first_price: float | None,
    last_price: float | None,
) -> float | None:
    """Compute the return of buying at the first price and holding to the last.

    Parameters
    ----------
    initial_capital: float
        Amount invested at ``first_price``.
    first_price: float | None
        Price of the first sample, ``None`` for an empty series.
    last_price: float | None
        Price of the last sample, ``None`` for an empty series.

    Returns
    -------
    float | None
        Profit or loss as a percentage of ``initial_capital``, or ``None`` when
        the series is empty or ``first_price`` is zero.
    """
    if first_price is None or last_price is None or first_price == 0:
        return None
    units_bought = initial_capital / first_price
    final_value = units_bought * last_price
    return (final_value - initial_capital) / initial_capital * 100


def buy_and_hold_for_series(
    initial_capital: float, price_series: pandas.Series
) -> float | None:
    """Apply :func:`calculate_buy_and_hold_percentage` to a price series."""
    if price_series.empty:
        return None
    return calculate_buy_and_hold_percentage(
        initial_capital,
        float(price_series.iloc[0]),
        float(price_series.iloc[-1]),
    )
