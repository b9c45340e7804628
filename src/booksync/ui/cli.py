from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from booksync.app import load_webhook_payload, reconcile_webhook, sweep_bookings
from booksync.config import ConfigurationError, configure_logging
from booksync.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from booksync.domain.reconciliation import SweepReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile booking records")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile = subparsers.add_parser(
        "reconcile",
        help="Apply a Checkfront webhook body to the booking store",
    )
    reconcile.add_argument(
        "payload",
        type=Path,
        help="Path to the webhook JSON body",
    )

    sweep = subparsers.add_parser(
        "sweep",
        help="Find duplicate bookings and collapse those that are paid",
    )
    sweep.add_argument(
        "--apply",
        action="store_true",
        help="Delete duplicates and merge staff (default: report only)",
    )

    return parser.parse_args(list(argv))


def _log_sweep(report: SweepReport) -> None:
    for group in report.groups:
        if group.keep is None:
            log.warning("%s: no PAID record, review manually", group.booking_code)
            continue
        log.info(
            "%s: keep %s (%s $%s), delete %s",
            group.booking_code,
            group.keep.record_id,
            group.keep.status,
            group.keep.total_amount,
            ", ".join(record.record_id for record in group.delete) or "-",
        )
    if report.applied:
        log.info(
            "Sweep applied: deleted=%s, failed=%s, staff_updated=%s",
            len(report.deleted),
            len(report.failed),
            len(report.updated),
        )
    else:
        log.info("Dry run only, re-run with --apply to delete %s record(s)", report.pending_deletions)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    if parsed_args.verbose:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        if parsed_args.command == "reconcile":
            payload = load_webhook_payload(parsed_args.payload)
            reconcile_webhook(payload)
        elif parsed_args.command == "sweep":
            report = sweep_bookings(apply=parsed_args.apply)
            _log_sweep(report)
            if report.failed:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValidationError, ConfigurationError, FileNotFoundError):
        log.exception("Invalid input or configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
