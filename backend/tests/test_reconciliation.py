from __future__ import annotations

from datetime import date
from decimal import Decimal

from backend.bizdash.models import EntryType, PaymentStatus
from backend.bizdash.services.aggregation import aggregate
from backend.bizdash.services.periods import month_window
from backend.bizdash.services.reconciliation import (
    build_shadow_set,
    find_orphan_links,
    is_generic_income,
    subscription_paid_date,
)
from backend.bizdash.services.records import FinancialEntryRecord, SubscriptionPaymentRecord

MAY_2024 = month_window(date(2024, 5, 1))


def _income(entry_id: str, amount: str, paid_at: date | None = None, **kwargs) -> FinancialEntryRecord:
    return FinancialEntryRecord(
        id=entry_id,
        type=EntryType.INCOME,
        amount=Decimal(amount),
        payment_status=kwargs.pop("payment_status", PaymentStatus.PAID),
        created_at=kwargs.pop("created_at", paid_at or date(2024, 5, 1)),
        paid_at=paid_at,
        **kwargs,
    )


def _payment(payment_id: str, amount: str, **kwargs) -> SubscriptionPaymentRecord:
    return SubscriptionPaymentRecord(
        id=payment_id,
        subscription_id=kwargs.pop("subscription_id", "s1"),
        month=kwargs.pop("month", 5),
        year=kwargs.pop("year", 2024),
        amount=Decimal(amount),
        payment_status=kwargs.pop("payment_status", PaymentStatus.PAID),
        **kwargs,
    )


def test_shadow_set_collects_only_linked_entry_ids():
    payments = [
        _payment("p1", "500", financial_entry_id="e1"),
        _payment("p2", "500", month=6),
        _payment("p3", "500", month=7, financial_entry_id="gone"),
    ]

    assert build_shadow_set(payments) == frozenset({"e1", "gone"})


def test_linked_entry_is_not_generic_income():
    shadow_set = frozenset({"e1"})

    assert not is_generic_income(_income("e1", "500", date(2024, 5, 10)), shadow_set)
    assert is_generic_income(_income("e2", "500", date(2024, 5, 10)), shadow_set)


def test_linked_payment_income_counts_once():
    entries = [_income("e1", "500", date(2024, 5, 10))]
    payments = [_payment("p1", "500", financial_entry_id="e1")]

    result = aggregate(entries, payments, build_shadow_set(payments), MAY_2024)

    assert result.paid_income == Decimal("500")
    assert result.paid_income_from_entries == Decimal("0")
    assert result.paid_subscription_income == Decimal("500")


def test_dropping_the_shadow_and_the_payment_leaves_the_total_unchanged():
    entries = [
        _income("e1", "500", date(2024, 5, 10)),
        _income("e2", "120", date(2024, 5, 20)),
    ]
    payments = [_payment("p1", "500", paid_at=date(2024, 5, 10), financial_entry_id="e1")]

    reconciled = aggregate(entries, payments, build_shadow_set(payments), MAY_2024)
    ledger_only = aggregate(entries, [], frozenset(), MAY_2024)

    assert reconciled.paid_income == ledger_only.paid_income == Decimal("620")


def test_paid_date_falls_back_to_linked_entry():
    entry = _income("e1", "500", date(2024, 5, 10))
    payment = _payment("p1", "500", financial_entry_id="e1")

    assert subscription_paid_date(payment, {"e1": entry}) == date(2024, 5, 10)
    assert subscription_paid_date(payment, {}) is None
    assert subscription_paid_date(
        _payment("p2", "500", paid_at=date(2024, 5, 3), financial_entry_id="e1"), {"e1": entry}
    ) == date(2024, 5, 3)


def test_orphan_links_are_reported_without_affecting_totals():
    entries = [_income("e2", "100", date(2024, 5, 2))]
    payments = [_payment("p1", "500", paid_at=date(2024, 5, 4), financial_entry_id="missing")]

    assert [payment.id for payment in find_orphan_links(payments, entries)] == ["p1"]

    result = aggregate(entries, payments, build_shadow_set(payments), MAY_2024)
    assert result.paid_income == Decimal("600")
