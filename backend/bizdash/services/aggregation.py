"""Month-bucketed paid and pending totals over an arbitrary window."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Sequence

from .break_even import MonthBucket
from .periods import DateWindow, period_key
from .reconciliation import is_generic_income, subscription_paid_date
from .records import ZERO, FinancialEntryRecord, SubscriptionPaymentRecord

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodAggregate:
    """Paid and pending totals for a window plus its per-month series."""

    window: DateWindow
    paid_income_from_entries: Decimal
    paid_subscription_income: Decimal
    pending_income: Decimal
    paid_expenses: Decimal
    pending_expenses: Decimal
    monthly: tuple[MonthBucket, ...]

    @property
    def paid_income(self) -> Decimal:
        return self.paid_income_from_entries + self.paid_subscription_income


class _MonthlyLedger:
    """Running sums keyed by ``YYYY-MM``, restricted to one window."""

    def __init__(self, window: DateWindow) -> None:
        self.window = window
        self.paid_entries: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        self.paid_subscriptions: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        self.pending_income: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        self.paid_expenses: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        self.pending_expenses: Dict[str, Decimal] = defaultdict(lambda: ZERO)

    def add(self, column: Dict[str, Decimal], when, amount: Decimal) -> None:
        if not self.window.contains(when):
            return
        column[period_key(when)] += amount

    @staticmethod
    def total(column: Dict[str, Decimal]) -> Decimal:
        return sum(column.values(), ZERO)


def aggregate(
    entries: Sequence[FinancialEntryRecord],
    subscription_payments: Iterable[SubscriptionPaymentRecord],
    shadow_set: frozenset[str],
    window: DateWindow,
) -> PeriodAggregate:
    """Aggregate ledger entries and subscription payments over ``window``.

    Paid amounts are placed by their paid date and open amounts by their
    creation date. Open income counts pending and partial entries at their
    remaining amount; pending expenses count only ``pending`` rows at their
    full amount. Paid entries without a paid date are left out entirely.
    Period totals are the sums of the monthly columns, so the series and the
    totals always agree.
    """

    ledger = _MonthlyLedger(window)
    entries_by_id = {entry.id: entry for entry in entries}

    for entry in entries:
        if entry.is_income:
            if not is_generic_income(entry, shadow_set):
                continue
            if entry.is_paid:
                ledger.add(ledger.paid_entries, entry.paid_at, entry.amount)
            elif entry.is_open:
                ledger.add(ledger.pending_income, entry.created_at, entry.open_amount)
        elif entry.is_expense:
            if entry.is_paid:
                ledger.add(ledger.paid_expenses, entry.paid_at, entry.amount)
            elif entry.is_pending:
                # Partial expenses are not counted as pending.
                ledger.add(ledger.pending_expenses, entry.created_at, entry.amount)

    for payment in subscription_payments:
        if not payment.is_paid or payment.is_skipped:
            continue
        paid_on = subscription_paid_date(payment, entries_by_id)
        ledger.add(ledger.paid_subscriptions, paid_on, payment.amount)

    monthly = tuple(
        MonthBucket.build(
            key,
            ledger.paid_entries[key] + ledger.paid_subscriptions[key],
            ledger.paid_expenses[key],
        )
        for key in (period_key(month.start) for month in window.months())
    )

    result = PeriodAggregate(
        window=window,
        paid_income_from_entries=ledger.total(ledger.paid_entries),
        paid_subscription_income=ledger.total(ledger.paid_subscriptions),
        pending_income=ledger.total(ledger.pending_income),
        paid_expenses=ledger.total(ledger.paid_expenses),
        pending_expenses=ledger.total(ledger.pending_expenses),
        monthly=monthly,
    )
    LOGGER.debug(
        "Aggregated %s entries over %s..%s into %s months",
        len(entries),
        window.start,
        window.end,
        len(monthly),
    )
    return result


def outstanding_income(
    entries: Iterable[FinancialEntryRecord],
    shadow_set: frozenset[str],
) -> Decimal:
    """Open generic income regardless of when it was created."""

    return sum(
        (
            entry.open_amount
            for entry in entries
            if is_generic_income(entry, shadow_set) and entry.is_open
        ),
        ZERO,
    )


def outstanding_expenses(entries: Iterable[FinancialEntryRecord]) -> Decimal:
    """Full amount of every ``pending`` expense, regardless of when it was created."""

    return sum(
        (entry.amount for entry in entries if entry.is_expense and entry.is_pending),
        ZERO,
    )


def expenses_by_category(
    entries: Iterable[FinancialEntryRecord],
    window: DateWindow,
) -> dict[int | None, Decimal]:
    """Paid expenses in ``window`` grouped by category id (``None`` if uncategorised)."""

    totals: Dict[int | None, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        if entry.is_expense and entry.is_paid and window.contains(entry.paid_at):
            totals[entry.category_id] += entry.amount
    return dict(totals)
