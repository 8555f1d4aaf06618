"""CLI utility to audit the links between subscription payments and the ledger."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from ..database import session_scope
from ..services.reconciliation import find_orphan_links
from ..services.record_store import RecordStore

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Checks subscription payments against ledger entries and reports rows the "
            "financial totals cannot place, suitable for cron or scheduled tasks."
        )
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every finding instead of only the counters.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any finding is reported.",
    )
    return parser.parse_args(argv)


def _log_findings(label: str, items: list) -> None:
    if not items:
        LOGGER.info("%s: no findings", label)
        return
    LOGGER.warning("%s: %s findings", label, len(items))
    for item in items:
        LOGGER.debug("%s detail: %s", label, item)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    with session_scope() as db:
        snapshot = RecordStore.load_snapshot(db)

    orphan_links = find_orphan_links(snapshot.subscription_payments, snapshot.entries)
    undated_entries = [
        entry for entry in snapshot.entries if entry.is_paid and entry.paid_at is None
    ]
    undated_payments = [
        payment
        for payment in snapshot.subscription_payments
        if payment.is_paid and not payment.is_skipped and payment.paid_at is None
    ]

    _log_findings("Subscription payments linked to missing ledger entries", orphan_links)
    _log_findings("Paid ledger entries without a paid date", undated_entries)
    _log_findings("Paid subscription payments without a paid date", undated_payments)

    LOGGER.info("Ledger reconciliation check finished")
    if args.strict and (orphan_links or undated_entries or undated_payments):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
