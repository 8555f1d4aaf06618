"""Router exposing reconciled financial figures."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import FinancialReportService, break_even
from ..services.periods import DateWindow, parse_period_key, resolve_window

LOGGER = logging.getLogger(__name__)

LOAD_FAILURE_DETAIL = "Could not load financial data. Try again later."

router = APIRouter()


def resolve_request_window(
    start_date: Optional[date],
    end_date: Optional[date],
    period_key: Optional[str],
    *,
    as_of: date,
) -> DateWindow:
    """Window from either a ``YYYY-MM`` key or explicit bounds; HTTP 400 when invalid."""

    try:
        if period_key is not None:
            return parse_period_key(period_key.strip())
        return resolve_window(start_date, end_date, as_of=as_of)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _load_failure(exc: SQLAlchemyError, operation: str) -> HTTPException:
    LOGGER.exception("Failed to %s", operation, exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=LOAD_FAILURE_DETAIL,
    )


@router.get("/dashboard", response_model=schemas.DashboardFinancialsResponse)
def get_dashboard_financials(
    as_of: Optional[date] = Query(default=None, description="Reference date, defaults to today"),
    db: Session = Depends(get_db),
) -> schemas.DashboardFinancialsResponse:
    """Return the current-month break-even card and the month grid of the year."""

    try:
        payload = FinancialReportService.dashboard(db, as_of=as_of or date.today())
    except SQLAlchemyError as exc:
        raise _load_failure(exc, "build dashboard financials") from exc
    return schemas.DashboardFinancialsResponse.model_validate(payload, from_attributes=True)


@router.get("/summary", response_model=schemas.FinancialReportResponse)
def get_financial_summary(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    period_key: Optional[str] = Query(default=None, description="Period key in YYYY-MM format"),
    customer_id: Optional[str] = Query(default=None),
    as_of: Optional[date] = Query(default=None, description="Reference date for projections"),
    db: Session = Depends(get_db),
) -> schemas.FinancialReportResponse:
    reference = as_of or date.today()
    window = resolve_request_window(start_date, end_date, period_key, as_of=reference)
    try:
        report = FinancialReportService.report(
            db, window, as_of=reference, customer_id=customer_id
        )
    except SQLAlchemyError as exc:
        raise _load_failure(exc, "build financial report") from exc
    return schemas.FinancialReportResponse.model_validate(report, from_attributes=True)


@router.get("/monthly", response_model=List[schemas.MonthBucketRead])
def get_monthly_break_even(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    period_key: Optional[str] = Query(default=None, description="Period key in YYYY-MM format"),
    customer_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[schemas.MonthBucketRead]:
    window = resolve_request_window(start_date, end_date, period_key, as_of=date.today())
    try:
        buckets = FinancialReportService.monthly(db, window, customer_id=customer_id)
    except SQLAlchemyError as exc:
        raise _load_failure(exc, "build monthly series") from exc
    return [schemas.MonthBucketRead.model_validate(item, from_attributes=True) for item in buckets]


@router.get("/break-even", response_model=schemas.BreakEvenRead)
def compute_break_even(
    income: Decimal = Query(..., ge=0, description="Paid income of the period"),
    expenses: Decimal = Query(..., ge=0, description="Paid expenses of the period"),
) -> schemas.BreakEvenRead:
    return schemas.BreakEvenRead.model_validate(break_even(income, expenses), from_attributes=True)


@router.get("/receivables", response_model=List[schemas.MonthlyReceivableRead])
def list_monthly_receivables(
    as_of: Optional[date] = Query(default=None, description="Reference date, defaults to today"),
    db: Session = Depends(get_db),
) -> List[schemas.MonthlyReceivableRead]:
    """Return unpaid income grouped by the month it falls due."""

    try:
        receivables = FinancialReportService.receivables(db, as_of=as_of or date.today())
    except SQLAlchemyError as exc:
        raise _load_failure(exc, "list receivables") from exc
    return [
        schemas.MonthlyReceivableRead.model_validate(item, from_attributes=True)
        for item in receivables
    ]


@router.get("/report/export", response_model=schemas.ReportExportResponse)
def export_financial_report(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    period_key: Optional[str] = Query(default=None, description="Period key in YYYY-MM format"),
    customer_id: Optional[str] = Query(default=None),
    as_of: Optional[date] = Query(default=None, description="Reference date for projections"),
    db: Session = Depends(get_db),
) -> schemas.ReportExportResponse:
    """Return the report data handed to the PDF generator."""

    reference = as_of or date.today()
    window = resolve_request_window(start_date, end_date, period_key, as_of=reference)
    try:
        payload = FinancialReportService.export_payload(
            db, window, as_of=reference, customer_id=customer_id
        )
    except SQLAlchemyError as exc:
        raise _load_failure(exc, "export financial report") from exc
    return schemas.ReportExportResponse.model_validate(payload, from_attributes=True)
