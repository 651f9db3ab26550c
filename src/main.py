import argparse
import csv
import logging
import sys
from decimal import Decimal
from typing import Dict, Optional, Sequence, TextIO

from config import EngineConfig
from exceptions import PaymentsError
from models import ClientAccount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def format_decimal(value: Decimal) -> str:
    """Format a ledger value (already at most 4 places), removing trailing zeros."""
    if value == 0:
        return "0"
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write the account snapshot as CSV, ordered by client id."""
    rows = [
        [
            client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ]
        for client_id, account in sorted(accounts.items())
    ]

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    writer.writerows(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-ledger",
        description="Replay a transactions CSV and print the final client accounts.",
    )
    parser.add_argument("input", help="Path to the transactions CSV")
    parser.add_argument(
        "--skip-malformed",
        action="store_true",
        default=None,
        help="Warn about malformed rows and keep going instead of aborting",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level for stderr diagnostics (default: WARNING)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = EngineConfig.from_env()
    except PaymentsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.skip_malformed is not None:
        config.skip_malformed = args.skip_malformed

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(config)
    try:
        accounts = engine.process_file(args.input)
    except PaymentsError as e:
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
