"""Command-line interface for stockanalysis runtime."""

from __future__ import annotations

import argparse
import sys

from stockanalysis.config import Settings, parse_symbols
from stockanalysis.errors import ConfigError
from stockanalysis.runtime import run, show_regime


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Technical indicator and advisory analysis for tracked stocks"
    )
    parser.add_argument("--symbols", type=str, help="Comma-separated symbols")
    parser.add_argument(
        "--data-source",
        choices=["csv", "alpha_vantage", "yfinance"],
        help="Price series source",
    )
    parser.add_argument("--historical-dir", type=str, help="CSV historical data directory")
    parser.add_argument("--events-dir", type=str, help="Run outputs directory")
    parser.add_argument("--max-workers", type=int, help="Concurrent analysis workers")
    parser.add_argument(
        "--job-delay",
        type=float,
        help="Seconds each worker waits between consecutive symbols",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--regime",
        action="store_true",
        help="Log per-symbol trends, breakouts and the market regime, then exit",
    )
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.symbols:
        overrides["symbols"] = parse_symbols(args.symbols, settings.symbols)
    if args.data_source:
        overrides["data_source"] = args.data_source
    if args.historical_dir:
        overrides["historical_data_dir"] = args.historical_dir
    if args.events_dir:
        overrides["events_dir"] = args.events_dir
    if args.max_workers is not None:
        overrides["max_workers"] = args.max_workers
    if args.job_delay is not None:
        overrides["job_delay_seconds"] = args.job_delay
    if args.log_level:
        overrides["log_level"] = args.log_level
    return settings.with_overrides(**overrides)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 2
    try:
        if args.regime:
            return show_regime(settings)
        return run(settings)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
