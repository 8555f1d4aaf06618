"""CLI utility that writes the financial report export payload as JSON."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import date
from pathlib import Path
from typing import Optional

from ..database import session_scope
from ..schemas import ReportExportResponse
from ..services import FinancialReportService
from ..services.periods import parse_period_key, resolve_window

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Exports the financial report used by the PDF generator as JSON."
    )
    parser.add_argument("--period", help="Month to export, in YYYY-MM format.")
    parser.add_argument("--start-date", type=date.fromisoformat, help="Window start (YYYY-MM-DD).")
    parser.add_argument("--end-date", type=date.fromisoformat, help="Window end (YYYY-MM-DD).")
    parser.add_argument("--customer-id", type=uuid.UUID, help="Restrict the report to one customer.")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference date for projections, defaults to today.",
    )
    parser.add_argument("--output", type=Path, help="File to write; stdout when omitted.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    as_of = args.as_of or date.today()
    try:
        if args.period:
            window = parse_period_key(args.period)
        else:
            window = resolve_window(args.start_date, args.end_date, as_of=as_of)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 2

    with session_scope() as db:
        payload = FinancialReportService.export_payload(
            db,
            window,
            as_of=as_of,
            customer_id=str(args.customer_id) if args.customer_id else None,
        )
        document = ReportExportResponse.model_validate(payload, from_attributes=True)

    rendered = document.model_dump_json(indent=2)
    if args.output:
        args.output.write_text(rendered, encoding="utf-8")
        LOGGER.info("Financial report for %s..%s written to %s", window.start, window.end, args.output)
    else:
        sys.stdout.write(rendered + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
