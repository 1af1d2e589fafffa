"""Command-line interface for the lending-market liquidator."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .chains.solana import SolanaClient
from .config import AppConfig, load_config
from .errors import ConfigurationError
from .executors import DryRunExecutor
from .logging_setup import configure_logging
from .oracles import PythOracle
from .protocols.solend import SolendMarket
from .services import EpochDriver, LiquidationScanner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-liquidator",
        description="Liquidation agent for Solana token-lending markets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    run_parser = sub.add_parser("run", help="Liquidate continuously, one epoch after another")
    run_parser.add_argument(
        "--throttle",
        type=float,
        default=None,
        help="Seconds to wait between epochs (overrides config)",
    )

    sub.add_parser("scan", help="Run a single epoch and exit")

    return parser


def build_driver(config: AppConfig, throttle: float | None = None) -> EpochDriver:
    """Wire the Solana collaborators into a scanner and driver."""
    market = SolendMarket(
        SolanaClient(config.chain),
        PythOracle(config.price_oracle.pyth),
    )
    executor = DryRunExecutor()
    scanner = LiquidationScanner(config, market, executor, executor)
    if throttle is None:
        throttle = config.liquidator.throttle_seconds
    return EpochDriver(scanner, throttle)


async def _run(args: argparse.Namespace, config: AppConfig) -> None:
    """Execute the selected command."""
    logger.info(
        "lendingMarket: %s  rpc: %s  wallet: %s",
        config.market.address,
        config.chain.rpc_endpoint,
        config.liquidator.wallet_address,
    )

    if args.command == "run":
        await build_driver(config, args.throttle).run()
    elif args.command == "scan":
        await build_driver(config).run(max_epochs=1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(2)

    asyncio.run(_run(args, config))
