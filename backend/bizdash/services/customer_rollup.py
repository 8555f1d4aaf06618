"""Per-customer revenue profile built from the shared aggregation rules."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence

from ..settings import DEFAULT_RANKING_LIMIT
from .aggregation import PeriodAggregate, aggregate
from .periods import DateWindow, period_key
from .reconciliation import build_shadow_set, subscription_paid_date
from .records import (
    ZERO,
    FinancialEntryRecord,
    SaleRecord,
    SubscriptionPaymentRecord,
    SubscriptionRecord,
)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PurchasedItem:
    description: str
    quantity: int
    total: Decimal


@dataclass(frozen=True)
class MonthlyRevenue:
    month: str
    value: Decimal


@dataclass(frozen=True)
class CustomerProfile:
    customer_id: str
    window: DateWindow
    financials: PeriodAggregate
    total_revenue: Decimal
    total_sales_amount: Decimal
    sales_count: int
    total_subscription_payments: Decimal
    subscription_payments_count: int
    average_transaction_value: Decimal
    total_transactions: int
    total_monthly_subscription: Decimal
    subscriptions_count: int
    income_from_entries: Decimal
    top_items: tuple[PurchasedItem, ...]
    monthly_history: tuple[MonthlyRevenue, ...]
    preferred_payment_method: str | None
    first_purchase: date | None
    last_purchase: date | None


def _top_items(sales: Iterable[SaleRecord], limit: int) -> tuple[PurchasedItem, ...]:
    # Grouped by the raw title: differently worded titles stay separate.
    quantities: Dict[str, int] = defaultdict(int)
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for sale in sales:
        quantities[sale.title] += 1
        totals[sale.title] += sale.total
    items = [
        PurchasedItem(description=title, quantity=quantities[title], total=totals[title])
        for title in totals
    ]
    items.sort(key=lambda item: item.total, reverse=True)
    return tuple(items[:limit])


def _preferred_payment_method(sales: Iterable[SaleRecord]) -> str | None:
    counts = Counter(sale.payment_method for sale in sales if sale.payment_method)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def customer_profile(
    customer_id: str,
    entries: Sequence[FinancialEntryRecord],
    sales: Iterable[SaleRecord],
    subscriptions: Iterable[SubscriptionRecord],
    subscription_payments: Sequence[SubscriptionPaymentRecord],
    window: DateWindow,
    *,
    ranking_limit: int = DEFAULT_RANKING_LIMIT,
) -> CustomerProfile:
    """Revenue profile of one customer over ``window``.

    Sales are a revenue channel of their own and are not matched against
    ledger entries. The shadow set is built from every payment so that a
    ledger entry tagged with this customer but mirroring another customer's
    subscription is still excluded.
    """

    shadow_set = build_shadow_set(subscription_payments)
    entries_by_id = {entry.id: entry for entry in entries}

    customer_subscriptions = [
        subscription for subscription in subscriptions if subscription.customer_id == customer_id
    ]
    active_subscriptions = [
        subscription for subscription in customer_subscriptions if subscription.is_active
    ]
    subscription_ids = {subscription.id for subscription in customer_subscriptions}
    customer_payments = [
        payment for payment in subscription_payments if payment.subscription_id in subscription_ids
    ]
    customer_entries = [entry for entry in entries if entry.customer_id == customer_id]

    financials = aggregate(customer_entries, customer_payments, shadow_set, window)

    paid_sales = [
        sale
        for sale in sales
        if sale.customer_id == customer_id and sale.is_paid and window.contains(sale.effective_date)
    ]
    paid_payments = []
    for payment in customer_payments:
        if not payment.is_paid or payment.is_skipped:
            continue
        paid_on = subscription_paid_date(payment, entries_by_id)
        if window.contains(paid_on):
            paid_payments.append((paid_on, payment))

    total_sales_amount = sum((sale.total for sale in paid_sales), ZERO)
    total_subscription_payments = sum((payment.amount for _, payment in paid_payments), ZERO)
    total_revenue = total_sales_amount + total_subscription_payments
    total_transactions = len(paid_sales) + len(paid_payments)
    average = (
        (total_revenue / total_transactions).quantize(CENTS, rounding=ROUND_HALF_UP)
        if total_transactions
        else ZERO
    )

    history: Dict[str, Decimal] = {
        period_key(month.start): ZERO for month in window.months()
    }
    for sale in paid_sales:
        history[period_key(sale.effective_date)] += sale.total
    for paid_on, payment in paid_payments:
        history[period_key(paid_on)] += payment.amount

    purchase_dates: List[date] = sorted(sale.sold_at for sale in paid_sales)

    return CustomerProfile(
        customer_id=customer_id,
        window=window,
        financials=financials,
        total_revenue=total_revenue,
        total_sales_amount=total_sales_amount,
        sales_count=len(paid_sales),
        total_subscription_payments=total_subscription_payments,
        subscription_payments_count=len(paid_payments),
        average_transaction_value=average,
        total_transactions=total_transactions,
        total_monthly_subscription=sum(
            (subscription.monthly_value for subscription in active_subscriptions), ZERO
        ),
        subscriptions_count=len(active_subscriptions),
        income_from_entries=financials.paid_income_from_entries,
        top_items=_top_items(paid_sales, ranking_limit),
        monthly_history=tuple(
            MonthlyRevenue(month=month, value=value) for month, value in history.items()
        ),
        preferred_payment_method=_preferred_payment_method(paid_sales),
        first_purchase=purchase_dates[0] if purchase_dates else None,
        last_purchase=purchase_dates[-1] if purchase_dates else None,
    )
