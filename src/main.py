import argparse
import logging
import os
import sys
from typing import Dict, List, Optional, TextIO

from engine import PaymentsEngine
from models import ClientAccount, format_amount

logger = logging.getLogger(__name__)

HEADER = "client,available,held,total,locked"


def write_accounts(accounts: Dict[int, ClientAccount], out: Optional[TextIO] = None) -> None:
    """Write one CSV line per client, sorted by client id."""
    out = out or sys.stdout
    print(HEADER, file=out)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_amount(account.available)},"
            f"{format_amount(account.held)},"
            f"{format_amount(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Replay a CSV of transactions and print final client balances.",
    )
    parser.add_argument("input", help="Path to the transactions CSV")
    parser.add_argument(
        "--strict-disputes",
        action="store_true",
        help="Only allow dispute/resolve/chargeback transitions that make sense for the referenced transaction",
    )
    parser.add_argument(
        "--reject-locked",
        action="store_true",
        help="Ignore every transaction on an account locked by a chargeback",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("PAYMENTS_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $PAYMENTS_LOG_LEVEL or WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(strict_disputes=args.strict_disputes, reject_locked=args.reject_locked)
    try:
        accounts = engine.process_file(args.input)
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1

    write_accounts(accounts)
    return 0


if __name__ == "__main__":
    sys.exit(main())
