"""Command-line interface for the margin risk toolkit."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .calculations.liquidation import (
    calculate_liquidation_price,
    calculate_margin_call_price,
    needs_liquidation,
)
from .calculations.margin import calculate_max_position_size, calculate_trade, parse_amount
from .calculations.pnl import calculate_pnl
from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .feeds import HttpAccountFeed, JsonLinesAccountFeed
from .interfaces.account_feed import AccountFeed
from .leverage import format_leverage_ratio
from .logging_setup import configure_logging
from .models import Direction, TradeCalculationInput
from .risk import calculate_margin_level, get_risk_level
from .services import RiskMonitor

logger = logging.getLogger(__name__)


def _direction(value: str) -> Direction:
    try:
        return Direction.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="margin-risk",
        description="CFD margin, leverage and risk-level toolkit",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root, if present)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    quote = sub.add_parser("quote", help="Margin, fee and affordability for a trade")
    quote.add_argument("asset_class")
    quote.add_argument("units", help="Units to trade (free text, invalid reads as 0)")
    quote.add_argument("price", type=float)
    quote.add_argument("--funds", type=float, default=0.0, help="Available funds")
    quote.add_argument("--direction", type=_direction, default=Direction.BUY)
    quote.add_argument(
        "--include-fee",
        action="store_true",
        default=None,
        help="Count the fee in the affordability check",
    )

    pnl = sub.add_parser("pnl", help="Unrealized P&L for a position")
    pnl.add_argument("direction", type=_direction)
    pnl.add_argument("entry_price", type=float)
    pnl.add_argument("current_price", type=float)
    pnl.add_argument("units", type=float)
    pnl.add_argument(
        "--asset-class",
        default=None,
        help="Report the percentage on margin at this asset class's leverage",
    )

    liq = sub.add_parser("liquidation", help="Margin-call and liquidation prices")
    liq.add_argument("direction", type=_direction)
    liq.add_argument("entry_price", type=float)
    liq.add_argument("units", type=float)
    liq.add_argument("asset_class")
    liq.add_argument("--current", type=float, default=None, help="Current price to test")

    risk = sub.add_parser("risk", help="Margin level and risk tier for an account")
    risk.add_argument("equity", type=float)
    risk.add_argument("used_margin", type=float)

    watch = sub.add_parser("watch", help="Follow account updates and alert on risk changes")
    watch.add_argument(
        "source",
        nargs="?",
        default=None,
        help="JSON-lines file of account updates ('-' for stdin); "
        "omit to poll account_feed.url",
    )

    sub.add_parser("check", help="Single position check with alerts")
    sub.add_parser("report", help="Generate daily position report")

    monitor_parser = sub.add_parser("monitor", help="Continuous position monitoring loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


def _load(args: argparse.Namespace) -> AppConfig:
    if args.config is None and not DEFAULT_CONFIG_PATH.exists():
        logger.debug("No config.yaml found, using defaults")
        return AppConfig()
    return load_config(args.config)


def _print_quote(args: argparse.Namespace, config: AppConfig) -> None:
    table = config.leverage.table()
    include_fee = (
        config.trading.include_fee_in_affordability
        if args.include_fee is None
        else args.include_fee
    )
    trade = TradeCalculationInput(
        asset_class=args.asset_class,
        current_price=args.price,
        direction=args.direction,
        units=parse_amount(args.units),
        available_funds=args.funds,
    )
    result = calculate_trade(
        trade, table=table, fee_rate=config.trading.fee_rate, include_fee=include_fee
    )
    max_units = calculate_max_position_size(
        args.asset_class, args.funds, args.price, table=table
    )
    print(f"Leverage:        {format_leverage_ratio(result.leverage)}")
    print(f"Position value:  {result.position_value:,.2f}")
    print(f"Margin required: {result.margin_required:,.2f}")
    print(f"Fee:             {result.fee:,.2f}")
    print(f"Total:           {result.total:,.2f}")
    print(f"Max units:       {max_units:,.4f}")
    print(f"Can afford:      {'yes' if result.can_afford else 'no'}")


def _print_pnl(args: argparse.Namespace, config: AppConfig) -> None:
    leverage = 1.0
    if args.asset_class:
        leverage = config.leverage.table().leverage_for(args.asset_class)
    result = calculate_pnl(
        args.entry_price, args.current_price, args.direction, args.units, leverage
    )
    print(f"P&L:        {result.pnl:,.2f}")
    print(f"P&L %:      {result.pnl_percentage:+.2f}%")
    print(f"Result:     {'profit' if result.is_profit else 'loss'}")


def _print_liquidation(args: argparse.Namespace, config: AppConfig) -> None:
    table = config.leverage.table()
    risk = config.risk
    margin_call = calculate_margin_call_price(
        args.direction,
        args.entry_price,
        args.units,
        args.asset_class,
        risk.margin_call_threshold,
        table,
    )
    liquidation = calculate_liquidation_price(
        args.direction,
        args.entry_price,
        args.units,
        args.asset_class,
        risk.liquidation_threshold,
        table,
    )
    print(f"Margin call price:  {margin_call:,.5f}")
    print(f"Liquidation price:  {liquidation:,.5f}")
    if args.current is not None:
        liquidate = needs_liquidation(
            args.direction,
            args.entry_price,
            args.current,
            args.units,
            args.asset_class,
            risk.liquidation_threshold,
            table,
        )
        print(f"Liquidate at {args.current:,.5f}: {'yes' if liquidate else 'no'}")


def _print_risk(args: argparse.Namespace) -> None:
    margin_level = calculate_margin_level(args.equity, args.used_margin)
    print(f"Margin level: {margin_level:,.2f}%")
    print(f"Risk level:   {get_risk_level(margin_level).value}")


def _make_feed(args: argparse.Namespace, config: AppConfig) -> AccountFeed:
    if args.source is not None:
        return JsonLinesAccountFeed(args.source)
    return HttpAccountFeed(config.account_feed)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = _load(args)

    if args.command == "quote":
        _print_quote(args, config)
    elif args.command == "pnl":
        _print_pnl(args, config)
    elif args.command == "liquidation":
        _print_liquidation(args, config)
    elif args.command == "risk":
        _print_risk(args)
    elif args.command == "watch":
        monitor = RiskMonitor(config, feed=_make_feed(args, config))
        await monitor.watch_account()
    elif args.command == "check":
        await RiskMonitor(config).check_and_alert()
    elif args.command == "report":
        await RiskMonitor(config).generate_daily_report()
    elif args.command == "monitor":
        await RiskMonitor(config).run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (FileNotFoundError, ValueError) as e:
        parser.error(str(e))
    except KeyboardInterrupt:
        logger.info("Interrupted")
