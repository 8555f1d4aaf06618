from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from backend.bizdash import models
from backend.bizdash.services.periods import month_window
from backend.bizdash.services.record_store import RecordStore


def test_load_snapshot_converts_rows_to_records(db_session, seed_financial_data):
    snapshot = RecordStore.load_snapshot(db_session)

    assert len(snapshot.entries) == 5
    assert len(snapshot.subscriptions) == 1
    assert len(snapshot.subscription_payments) == 1
    assert len(snapshot.sales) == 3

    payment = snapshot.subscription_payments[0]
    assert payment.financial_entry_id == str(seed_financial_data["mirrored_entry"].id)
    assert payment.paid_at is None
    assert isinstance(payment.amount, Decimal)

    supplies = next(entry for entry in snapshot.entries if entry.description == "Supplies")
    assert supplies.payment_status is models.PaymentStatus.PARTIAL
    assert supplies.open_amount == Decimal("60")
    assert supplies.created_at == date(2024, 5, 15)


def test_window_filter_matches_created_or_paid_dates(db_session, seed_financial_data):
    late_payment = models.FinancialEntry(
        type=models.EntryType.INCOME,
        description="Paid in June",
        amount=Decimal("80"),
        payment_status=models.PaymentStatus.PAID,
        created_at=datetime(2024, 5, 28, 12, 0, 0),
        paid_at=date(2024, 6, 2),
    )
    db_session.add(late_payment)
    db_session.commit()

    june = RecordStore.fetch_financial_entries(db_session, window=month_window(date(2024, 6, 1)))

    assert [entry.description for entry in june] == ["Paid in June"]


def test_fetch_sales_by_customer_and_window(db_session, seed_financial_data):
    bravo_id = str(seed_financial_data["bravo"].id)

    may_sales = RecordStore.fetch_sales(
        db_session, window=month_window(date(2024, 5, 1)), customer_id=bravo_id
    )
    acme_sales = RecordStore.fetch_sales(
        db_session, customer_id=str(seed_financial_data["acme"].id)
    )

    assert [sale.title for sale in may_sales] == ["Logo design", "Business cards"]
    assert all(sale.customer_id == bravo_id for sale in may_sales)
    assert acme_sales == []


def test_fetch_subscriptions_can_skip_inactive(db_session, seed_financial_data):
    seed_financial_data["subscription"].is_active = False
    db_session.commit()

    assert RecordStore.fetch_subscriptions(db_session, active_only=True) == []
    assert len(RecordStore.fetch_subscriptions(db_session)) == 1
