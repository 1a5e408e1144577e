#!/usr/bin/env python3
"""
Lot ledger CLI - Apply buy/sell events and print the remaining tax lots.

Usage:
    python -m lot_ledger.cli.ledger fifo < events.csv
    lot-ledger hifo -i events.csv -o results/lots.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

import yaml

from ..config.validator import (
    DEFAULT_CONFIG_PATH,
    ConfigValidationError,
    load_and_validate_config,
)
from ..processor import LedgerProcessor
from ..tax.cost_basis import CostBasisMethod
from ..tax.errors import LedgerError
from ..tax.lot_tracking import Ledger
from ..utils.logging import LogContext, setup_logging

logger = logging.getLogger(__name__)


def format_records(
    ledger: Ledger,
    price_decimals: int = 2,
    quantity_decimals: int = 8,
) -> list[str]:
    """Render open lots as ``id,date,price,quantity`` lines."""
    return [
        ",".join(str(value) for value in record)
        for record in ledger.to_records(price_decimals, quantity_decimals)
    ]


def save_lots(ledger: Ledger, output_file: str) -> Path:
    """Write open lots to .json, .yaml/.yml or .csv; anything else gets plain records."""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    lots = [lot.to_dict() for lot in ledger.open_lots()]

    if output_file.endswith(".json"):
        with open(output_path, "w") as f:
            json.dump(lots, f, indent=2)
    elif output_file.endswith(".yaml") or output_file.endswith(".yml"):
        with open(output_path, "w") as f:
            yaml.safe_dump(lots, f, default_flow_style=False, sort_keys=False)
    elif output_file.endswith(".csv"):
        ledger.to_frame().to_csv(output_path, index=False)
    else:
        with open(output_path, "w") as f:
            f.write("\n".join(format_records(ledger)) + "\n")

    logger.info(f"Lots saved to: {output_path}")
    return output_path


def run_ledger(
    lines: TextIO,
    settings: dict,
    method: Optional[str] = None,
    on_error: Optional[str] = None,
    output: Optional[TextIO] = None,
    output_file: Optional[str] = None,
) -> LedgerProcessor:
    """
    Process input lines and print the remaining lots.

    Args:
        lines: Event input, one ``date,action,price,quantity`` per line
        settings: Validated settings with defaults applied
        method: Cost basis method, overrides ``ledger.strategy``
        on_error: Error policy, overrides ``ledger.on_error``
        output: Stream for lot records
        output_file: Optional file to also save lots to

    Returns:
        The processor, holding the final ledger and summary

    Raises:
        LedgerError: If an event is rejected and the policy is abort
    """
    if on_error:
        settings = {**settings, "ledger": {**settings.get("ledger", {}), "on_error": on_error}}

    processor = LedgerProcessor.from_settings(settings, method=method)
    logger.info(
        f"Processing events with {processor.method.value} "
        f"(on_error={processor.on_error.value})"
    )

    with LogContext(strategy=processor.method.value):
        summary = processor.process_lines(lines)
    logger.info(f"Processing summary: {summary.to_dict()}")

    output = output or sys.stdout
    output_settings = settings.get("output", {})
    for line in format_records(
        processor.ledger,
        price_decimals=output_settings.get("price_decimals", 2),
        quantity_decimals=output_settings.get("quantity_decimals", 8),
    ):
        print(line, file=output)

    if output_file:
        save_lots(processor.ledger, output_file)

    return processor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lot-ledger",
        description="Track tax lots for a single asset from buy/sell events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input lines are: date,action,price,quantity
  2021-01-01,buy,10000.00,1.00000000
  2021-02-01,sell,20000.00,0.50000000

Examples:
  # First-in-first-out from stdin
  lot-ledger fifo < events.csv

  # Highest cost first, stop at the first bad event
  lot-ledger hifo -i events.csv --on-error abort

  # Save remaining lots as JSON
  lot-ledger fifo -i events.csv -o results/lots.json
        """,
    )

    parser.add_argument(
        "strategy",
        nargs="?",
        default=None,
        type=str.lower,
        choices=CostBasisMethod.names(),
        help="Cost basis method (default: ledger.strategy from config, else fifo)",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help=f"Settings file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "-i", "--input",
        type=str,
        default=None,
        help="Event file (default: stdin)",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Also save remaining lots to a file (.json, .yaml, .csv or text)",
    )
    parser.add_argument(
        "--on-error",
        choices=["skip", "abort"],
        default=None,
        help="Skip rejected events or abort the run (default: skip)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Log level (default: logging.level from config, else WARNING)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def main(argv: Optional[list[str]] = None):
    """Main entry point for the lot ledger CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_and_validate_config(
            args.config or DEFAULT_CONFIG_PATH,
            required=args.config is not None,
        )
    except (ConfigValidationError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    log_settings = settings["logging"]
    level = "DEBUG" if args.verbose else (args.log_level or log_settings["level"])
    setup_logging(
        level=level,
        log_file=args.log_file or log_settings["file"],
        json_format=args.json_logs or log_settings["json_format"],
    )

    try:
        if args.input:
            with open(args.input) as lines:
                run_ledger(
                    lines,
                    settings,
                    method=args.strategy,
                    on_error=args.on_error,
                    output_file=args.output,
                )
        else:
            run_ledger(
                sys.stdin,
                settings,
                method=args.strategy,
                on_error=args.on_error,
                output_file=args.output,
            )
    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        sys.exit(130)
    except LedgerError as e:
        logger.error(f"Aborted: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"I/O error: {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
