"""Router exposing per-customer revenue profiles."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import CustomerNotFoundError, FinancialReportService
from .financial import LOAD_FAILURE_DETAIL, resolve_request_window

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{customer_id}/profile", response_model=schemas.CustomerProfileResponse)
def get_customer_profile(
    customer_id: UUID,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    period_key: Optional[str] = Query(default=None, description="Period key in YYYY-MM format"),
    db: Session = Depends(get_db),
) -> schemas.CustomerProfileResponse:
    window = resolve_request_window(start_date, end_date, period_key, as_of=date.today())
    try:
        profile = FinancialReportService.customer_profile(db, str(customer_id), window)
    except CustomerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found") from exc
    except SQLAlchemyError as exc:
        LOGGER.exception(
            "Failed to build customer profile",
            exc_info=exc,
            extra={"customer_id": str(customer_id)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=LOAD_FAILURE_DETAIL,
        ) from exc
    return schemas.CustomerProfileResponse.model_validate(profile, from_attributes=True)
