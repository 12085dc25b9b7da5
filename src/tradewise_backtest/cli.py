"""Command line interface for running backtests on a local price file.

Prices are read from a CSV file whose first column holds dates. The column
used for prices is chosen with ``--price-column`` and defaults to ``price``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas

from . import backtest, data_loader
from .config import (
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_LONG_WINDOW,
    DEFAULT_SHORT_WINDOW,
    CrossoverConfig,
    StrategyConfiguration,
    ThresholdConfig,
)

LOGGER = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the command line interface."""
    parser = argparse.ArgumentParser(
        description="Backtest a trading strategy against historical prices."
    )
    parser.add_argument(
        "--prices", required=True, type=Path, help="CSV file with historical prices."
    )
    parser.add_argument(
        "--strategy",
        required=True,
        choices=["crossover", "threshold"],
        help="Trading strategy to apply to the data.",
    )
    parser.add_argument(
        "--initial-capital",
        type=float,
        default=DEFAULT_INITIAL_CAPITAL,
        help=f"Starting cash. Defaults to {DEFAULT_INITIAL_CAPITAL}.",
    )
    parser.add_argument(
        "--short-window",
        type=int,
        default=DEFAULT_SHORT_WINDOW,
        help="Short moving average window for the crossover strategy.",
    )
    parser.add_argument(
        "--long-window",
        type=int,
        default=DEFAULT_LONG_WINDOW,
        help="Long moving average window for the crossover strategy.",
    )
    parser.add_argument(
        "--signal", help="Signal for the threshold strategy (Buy, Sell or Hold)."
    )
    parser.add_argument(
        "--entry-price", type=float, help="Entry price for the threshold strategy."
    )
    parser.add_argument(
        "--exit-price", type=float, help="Exit price for the threshold strategy."
    )
    parser.add_argument(
        "--start", help="Optional first date to include (YYYY-MM-DD)."
    )
    parser.add_argument("--end", help="Optional last date to include (YYYY-MM-DD).")
    parser.add_argument(
        "--price-column",
        default=data_loader.PRICE_SERIES_NAME,
        help="Column in the CSV file holding prices. Defaults to 'price'.",
    )
    parser.add_argument(
        "--output",
        help="Optional path to a CSV file for writing the trade log.",
    )
    return parser


def _parse_date(date_text: str | None) -> pandas.Timestamp | None:
    return pandas.Timestamp(date_text) if date_text else None


def _build_configuration(parsed_arguments: argparse.Namespace) -> StrategyConfiguration:
    if parsed_arguments.strategy == "crossover":
        return CrossoverConfig(
            initial_capital=parsed_arguments.initial_capital,
            short_window=parsed_arguments.short_window,
            long_window=parsed_arguments.long_window,
            start_time=_parse_date(parsed_arguments.start),
            end_time=_parse_date(parsed_arguments.end),
        )
    return ThresholdConfig(
        initial_capital=parsed_arguments.initial_capital,
        signal=parsed_arguments.signal,
        entry_price=parsed_arguments.entry_price,
        exit_price=parsed_arguments.exit_price,
        start_time=_parse_date(parsed_arguments.start),
        end_time=_parse_date(parsed_arguments.end),
    )


def run_cli(argument_list: Optional[List[str]] = None) -> backtest.BacktestResult:
    """Parse command line arguments and run the selected strategy.

    Invalid configurations and unreadable price files end the program through
    :meth:`argparse.ArgumentParser.error`.
    """
    parser = create_parser()
    parsed_arguments = parser.parse_args(argument_list)

    try:
        strategy_configuration = _build_configuration(parsed_arguments)
        price_series = data_loader.load_price_series(
            parsed_arguments.prices,
            start=parsed_arguments.start,
            end=parsed_arguments.end,
            price_column=parsed_arguments.price_column,
        )
    except (ValueError, OSError) as input_error:
        LOGGER.error("Cannot run backtest: %s", input_error)
        parser.error(str(input_error))

    result = backtest.run_backtest(strategy_configuration, price_series)
    LOGGER.info("Final value: %.2f", result.final_value)
    LOGGER.info(
        "Total profit/loss: %.2f (%.2f%%)",
        result.total_profit_loss,
        result.profit_loss_percent,
    )
    LOGGER.info("Trades: %d", result.trade_count)
    if result.buy_and_hold_percent is not None:
        LOGGER.info("Buy and hold: %.2f%%", result.buy_and_hold_percent)
    if result.status_message:
        LOGGER.info("%s", result.status_message)
    if parsed_arguments.output:
        result_data_frame = backtest.trade_log_to_frame(result.trade_log)
        result_data_frame.to_csv(parsed_arguments.output, index=False)
        LOGGER.info("Trade log written to %s", parsed_arguments.output)
    return result


def main() -> None:
    """Configure logging and run the command line interface."""
    logging.basicConfig(
        level=logging.INFO,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    run_cli()


if __name__ == "__main__":
    main()
