"""Read-only adapter that turns stored rows into engine records."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from .. import models
from .periods import DateWindow
from .records import (
    FinancialEntryRecord,
    RecordSnapshot,
    SaleRecord,
    SubscriptionPaymentRecord,
    SubscriptionRecord,
    to_date,
    to_decimal,
)

LOGGER = logging.getLogger(__name__)


def _window_bounds(window: DateWindow) -> tuple[datetime, datetime]:
    return (
        datetime.combine(window.start, time.min),
        datetime.combine(window.end + timedelta(days=1), time.min),
    )


class RecordStore:
    """Bulk fetches by table and filter, validated into frozen records."""

    @staticmethod
    def _entry_record(row: models.FinancialEntry) -> FinancialEntryRecord:
        return FinancialEntryRecord(
            id=str(row.id),
            type=models.EntryType(row.type),
            amount=to_decimal(row.amount),
            payment_status=models.PaymentStatus(row.payment_status),
            created_at=to_date(row.created_at),
            remaining_amount=(
                to_decimal(row.remaining_amount) if row.remaining_amount is not None else None
            ),
            due_date=to_date(row.due_date),
            paid_at=to_date(row.paid_at),
            customer_id=str(row.customer_id) if row.customer_id else None,
            category_id=row.category_id,
            description=row.description,
        )

    @staticmethod
    def _subscription_record(row: models.Subscription) -> SubscriptionRecord:
        return SubscriptionRecord(
            id=str(row.id),
            monthly_value=to_decimal(row.monthly_value),
            start_date=to_date(row.start_date),
            is_active=bool(row.is_active),
            end_date=to_date(row.end_date),
            customer_id=str(row.customer_id) if row.customer_id else None,
            payment_day=row.payment_day,
            title=row.title or "",
        )

    @staticmethod
    def _payment_record(row: models.SubscriptionPayment) -> SubscriptionPaymentRecord:
        return SubscriptionPaymentRecord(
            id=str(row.id),
            subscription_id=str(row.subscription_id),
            month=int(row.month),
            year=int(row.year),
            amount=to_decimal(row.amount),
            payment_status=models.PaymentStatus(row.payment_status),
            paid_at=to_date(row.paid_at),
            financial_entry_id=str(row.financial_entry_id) if row.financial_entry_id else None,
            is_skipped=bool(row.is_skipped),
        )

    @staticmethod
    def _sale_record(row: models.Sale) -> SaleRecord:
        return SaleRecord(
            id=str(row.id),
            title=row.title or "",
            total=to_decimal(row.total),
            payment_status=models.PaymentStatus(row.payment_status),
            sold_at=to_date(row.sold_at),
            paid_at=to_date(row.paid_at),
            customer_id=str(row.customer_id) if row.customer_id else None,
            payment_method=row.payment_method,
        )

    @staticmethod
    def fetch_financial_entries(
        db: Session,
        *,
        window: Optional[DateWindow] = None,
        customer_id: Optional[str] = None,
    ) -> List[FinancialEntryRecord]:
        """Entries created or paid inside ``window``, optionally for one customer."""

        query = db.query(models.FinancialEntry)
        if window is not None:
            lower, upper = _window_bounds(window)
            query = query.filter(
                or_(
                    and_(
                        models.FinancialEntry.created_at >= lower,
                        models.FinancialEntry.created_at < upper,
                    ),
                    and_(
                        models.FinancialEntry.paid_at >= window.start,
                        models.FinancialEntry.paid_at <= window.end,
                    ),
                )
            )
        if customer_id is not None:
            query = query.filter(models.FinancialEntry.customer_id == customer_id)
        rows = query.order_by(models.FinancialEntry.created_at).all()
        return [RecordStore._entry_record(row) for row in rows]

    @staticmethod
    def fetch_subscriptions(db: Session, *, active_only: bool = False) -> List[SubscriptionRecord]:
        query = db.query(models.Subscription)
        if active_only:
            query = query.filter(models.Subscription.is_active.is_(True))
        rows = query.order_by(models.Subscription.start_date).all()
        return [RecordStore._subscription_record(row) for row in rows]

    @staticmethod
    def fetch_subscription_payments(db: Session) -> List[SubscriptionPaymentRecord]:
        rows = (
            db.query(models.SubscriptionPayment)
            .order_by(models.SubscriptionPayment.year, models.SubscriptionPayment.month)
            .all()
        )
        return [RecordStore._payment_record(row) for row in rows]

    @staticmethod
    def fetch_sales(
        db: Session,
        *,
        window: Optional[DateWindow] = None,
        customer_id: Optional[str] = None,
    ) -> List[SaleRecord]:
        """Sales sold or paid inside ``window``, optionally for one customer."""

        query = db.query(models.Sale)
        if window is not None:
            query = query.filter(
                or_(
                    and_(models.Sale.sold_at >= window.start, models.Sale.sold_at <= window.end),
                    and_(models.Sale.paid_at >= window.start, models.Sale.paid_at <= window.end),
                )
            )
        if customer_id is not None:
            query = query.filter(models.Sale.customer_id == customer_id)
        rows = query.order_by(models.Sale.sold_at).all()
        return [RecordStore._sale_record(row) for row in rows]

    @staticmethod
    def load_snapshot(
        db: Session,
        *,
        window: Optional[DateWindow] = None,
        customer_id: Optional[str] = None,
    ) -> RecordSnapshot:
        """Read the four record sets with one session so they agree with each other."""

        snapshot = RecordSnapshot(
            entries=tuple(
                RecordStore.fetch_financial_entries(db, window=window, customer_id=customer_id)
            ),
            subscriptions=tuple(RecordStore.fetch_subscriptions(db)),
            subscription_payments=tuple(RecordStore.fetch_subscription_payments(db)),
            sales=tuple(RecordStore.fetch_sales(db, window=window, customer_id=customer_id)),
        )
        LOGGER.debug(
            "Loaded snapshot: %s entries, %s subscriptions, %s payments, %s sales",
            len(snapshot.entries),
            len(snapshot.subscriptions),
            len(snapshot.subscription_payments),
            len(snapshot.sales),
        )
        return snapshot
