"""Projection of subscription months that are owed but not yet paid."""

from __future__ import annotations

import logging
from calendar import monthrange
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from ..settings import DEFAULT_HORIZON_MONTHS, DEFAULT_PAYMENT_DAY
from .periods import add_months, month_start, period_key
from .reconciliation import is_generic_income
from .records import (
    ZERO,
    FinancialEntryRecord,
    ProjectedObligation,
    SubscriptionPaymentRecord,
    SubscriptionRecord,
)

LOGGER = logging.getLogger(__name__)

PaymentIndex = Mapping[tuple[str, int, int], SubscriptionPaymentRecord]


@dataclass(frozen=True)
class ReceivableItem:
    reference: str
    description: str
    amount: Decimal
    due_date: date
    status: str
    source: str
    customer_id: str | None = None


@dataclass(frozen=True)
class MonthlyReceivable:
    month: str
    total: Decimal
    entries: tuple[ReceivableItem, ...]


def index_payments(
    subscription_payments: Iterable[SubscriptionPaymentRecord],
) -> Dict[tuple[str, int, int], SubscriptionPaymentRecord]:
    return {payment.period: payment for payment in subscription_payments}


def projection_limit(subscription: SubscriptionRecord, as_of: date, horizon_months: int) -> date:
    """Exclusive upper bound for the months a subscription projects."""

    horizon = add_months(as_of, horizon_months)
    if subscription.end_date is None:
        return horizon
    return min(subscription.end_date, horizon)


def _due_date(cursor: date, payment_day: int | None, default_payment_day: int) -> date:
    _, last_day = monthrange(cursor.year, cursor.month)
    return cursor.replace(day=min(payment_day or default_payment_day, last_day))


def _project_subscription(
    subscription: SubscriptionRecord,
    payments: PaymentIndex,
    as_of: date,
    horizon_months: int,
    default_payment_day: int,
) -> List[ProjectedObligation]:
    if not subscription.is_active:
        return []
    if subscription.end_date is not None and subscription.end_date < as_of:
        return []

    obligations: List[ProjectedObligation] = []
    limit = projection_limit(subscription, as_of, horizon_months)
    cursor = month_start(subscription.start_date)
    while cursor < limit:
        payment = payments.get((subscription.id, cursor.month, cursor.year))
        if payment is None or not (payment.is_paid or payment.is_skipped):
            obligations.append(
                ProjectedObligation(
                    subscription_id=subscription.id,
                    month=cursor.month,
                    year=cursor.year,
                    due_date=_due_date(cursor, subscription.payment_day, default_payment_day),
                    amount=subscription.monthly_value,
                    is_virtual=payment is None,
                    payment_id=payment.id if payment is not None else None,
                    customer_id=subscription.customer_id,
                    title=subscription.title,
                )
            )
        cursor = add_months(cursor, 1)
    return obligations


def project_obligations(
    subscriptions: Iterable[SubscriptionRecord],
    subscription_payments: Iterable[SubscriptionPaymentRecord],
    as_of: date,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
    *,
    default_payment_day: int = DEFAULT_PAYMENT_DAY,
) -> List[ProjectedObligation]:
    """Every owed subscription month up to ``as_of`` plus the horizon.

    Months elapsed before ``as_of`` are still owed when unpaid; the horizon
    caps open-ended subscriptions so the list is always finite.
    """

    payments = index_payments(subscription_payments)
    obligations: List[ProjectedObligation] = []
    for subscription in subscriptions:
        obligations.extend(
            _project_subscription(
                subscription, payments, as_of, horizon_months, default_payment_day
            )
        )
    LOGGER.debug("Projected %s pending subscription months as of %s", len(obligations), as_of)
    return obligations


def project_pending(
    subscriptions: Iterable[SubscriptionRecord],
    subscription_payments: Iterable[SubscriptionPaymentRecord],
    as_of: date,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> Decimal:
    """Total owed across :func:`project_obligations`."""

    return sum(
        (
            obligation.amount
            for obligation in project_obligations(
                subscriptions, subscription_payments, as_of, horizon_months
            )
        ),
        ZERO,
    )


def monthly_receivables(
    entries: Iterable[FinancialEntryRecord],
    subscriptions: Iterable[SubscriptionRecord],
    subscription_payments: Iterable[SubscriptionPaymentRecord],
    shadow_set: frozenset[str],
    as_of: date,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
    *,
    default_payment_day: int = DEFAULT_PAYMENT_DAY,
) -> List[MonthlyReceivable]:
    """Unpaid income grouped by the month it falls due.

    Ledger income is placed by ``due_date`` (entries without one are not
    scheduled); subscription months come from the projector.
    """

    grouped: Dict[str, List[ReceivableItem]] = defaultdict(list)

    for entry in entries:
        if entry.is_paid or entry.due_date is None:
            continue
        if not is_generic_income(entry, shadow_set):
            continue
        grouped[period_key(entry.due_date)].append(
            ReceivableItem(
                reference=entry.id,
                description=entry.description or "",
                amount=entry.amount,
                due_date=entry.due_date,
                status=entry.payment_status.value,
                source="financial",
                customer_id=entry.customer_id,
            )
        )

    for obligation in project_obligations(
        subscriptions,
        subscription_payments,
        as_of,
        horizon_months,
        default_payment_day=default_payment_day,
    ):
        grouped[obligation.month_key].append(
            ReceivableItem(
                reference=obligation.payment_id
                or f"sub-{obligation.subscription_id}-{obligation.month_key}",
                description=obligation.title,
                amount=obligation.amount,
                due_date=obligation.due_date,
                status="pending",
                source="subscription",
                customer_id=obligation.customer_id,
            )
        )

    return [
        MonthlyReceivable(
            month=month,
            total=sum((item.amount for item in items), ZERO),
            entries=tuple(sorted(items, key=lambda item: (item.due_date, item.reference))),
        )
        for month, items in sorted(grouped.items())
    ]
