"""Immutable record shapes consumed by the financial engine.

The engine never touches ORM rows directly: the record store converts rows
into these frozen dataclasses, normalising amounts to ``Decimal`` and every
timestamp to a calendar ``date``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..models import EntryType, PaymentStatus

ZERO = Decimal("0")

OPEN_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PARTIAL})


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value or 0))


def to_date(value: date | datetime | str | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class FinancialEntryRecord:
    id: str
    type: EntryType
    amount: Decimal
    payment_status: PaymentStatus
    created_at: date
    remaining_amount: Decimal | None = None
    due_date: date | None = None
    paid_at: date | None = None
    customer_id: str | None = None
    category_id: int | None = None
    description: str | None = None

    @property
    def is_income(self) -> bool:
        return self.type == EntryType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == EntryType.EXPENSE

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_open(self) -> bool:
        return self.payment_status in OPEN_STATUSES

    @property
    def is_pending(self) -> bool:
        return self.payment_status == PaymentStatus.PENDING

    @property
    def open_amount(self) -> Decimal:
        """Amount still owed: ``remaining_amount`` when recorded, else ``amount``."""

        if self.remaining_amount is not None:
            return self.remaining_amount
        return self.amount


@dataclass(frozen=True)
class SubscriptionRecord:
    id: str
    monthly_value: Decimal
    start_date: date
    is_active: bool = True
    end_date: date | None = None
    customer_id: str | None = None
    payment_day: int | None = None
    title: str = ""


@dataclass(frozen=True)
class SubscriptionPaymentRecord:
    id: str
    subscription_id: str
    month: int
    year: int
    amount: Decimal
    payment_status: PaymentStatus
    paid_at: date | None = None
    financial_entry_id: str | None = None
    is_skipped: bool = False

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def period(self) -> tuple[str, int, int]:
        return self.subscription_id, self.month, self.year


@dataclass(frozen=True)
class SaleRecord:
    id: str
    title: str
    total: Decimal
    payment_status: PaymentStatus
    sold_at: date
    paid_at: date | None = None
    customer_id: str | None = None
    payment_method: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def effective_date(self) -> date:
        return self.paid_at or self.sold_at


@dataclass(frozen=True)
class ProjectedObligation:
    """A subscription month that is still owed.

    Synthesised by the projector and never written back: it has no store id
    of its own. ``payment_id`` points at the pending payment row when one
    exists, and ``is_virtual`` is true when no row exists for the month.
    """

    subscription_id: str
    month: int
    year: int
    due_date: date
    amount: Decimal
    is_virtual: bool
    payment_id: str | None = None
    customer_id: str | None = None
    title: str = ""

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class RecordSnapshot:
    """The four record sets read together for one aggregation call."""

    entries: tuple[FinancialEntryRecord, ...]
    subscriptions: tuple[SubscriptionRecord, ...]
    subscription_payments: tuple[SubscriptionPaymentRecord, ...]
    sales: tuple[SaleRecord, ...]
