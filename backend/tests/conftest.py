from __future__ import annotations

import os
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# The test database is created from the models, not through Alembic.
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")

from backend.bizdash import models
from backend.bizdash.database import Base, get_db
from backend.bizdash.main import app

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clear_financial_env(monkeypatch) -> None:
    for name in (
        "FINANCIAL_PROJECTION_HORIZON_MONTHS",
        "FINANCIAL_RANKING_LIMIT",
        "FINANCIAL_DEFAULT_PAYMENT_DAY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


def _at_noon(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, 12, 0, 0)


@pytest.fixture
def seed_financial_data(db_session: Session) -> dict:
    """Two customers with ledger entries, a subscription and sales in 2024."""

    acme = models.Customer(name="Acme Studio", email="hola@acme.test")
    bravo = models.Customer(name="Bravo Café")
    db_session.add_all([acme, bravo])

    rent = models.ExpenseCategory(name="Rent", color="#ff0000")
    db_session.add(rent)
    db_session.flush()

    subscription = models.Subscription(
        customer=acme,
        title="Monthly retainer",
        monthly_value=Decimal("500"),
        start_date=date(2024, 5, 1),
        payment_day=10,
        is_active=True,
    )
    db_session.add(subscription)
    db_session.flush()

    # Ledger copy of the May retainer payment, shadowed by the payment row.
    mirrored = models.FinancialEntry(
        type=models.EntryType.INCOME,
        description="Retainer May",
        amount=Decimal("500"),
        payment_status=models.PaymentStatus.PAID,
        created_at=_at_noon(date(2024, 5, 10)),
        paid_at=date(2024, 5, 10),
        customer=acme,
    )
    consulting = models.FinancialEntry(
        type=models.EntryType.INCOME,
        description="Consulting",
        amount=Decimal("300"),
        payment_status=models.PaymentStatus.PAID,
        created_at=_at_noon(date(2024, 5, 12)),
        paid_at=date(2024, 5, 12),
        customer=bravo,
    )
    invoice = models.FinancialEntry(
        type=models.EntryType.INCOME,
        description="Workshop invoice",
        amount=Decimal("250"),
        payment_status=models.PaymentStatus.PENDING,
        created_at=_at_noon(date(2024, 5, 20)),
        due_date=date(2024, 6, 5),
        customer=bravo,
    )
    office_rent = models.FinancialEntry(
        type=models.EntryType.EXPENSE,
        description="Office rent",
        amount=Decimal("400"),
        payment_status=models.PaymentStatus.PAID,
        created_at=_at_noon(date(2024, 5, 2)),
        paid_at=date(2024, 5, 2),
        category=rent,
    )
    supplies = models.FinancialEntry(
        type=models.EntryType.EXPENSE,
        description="Supplies",
        amount=Decimal("100"),
        payment_status=models.PaymentStatus.PARTIAL,
        remaining_amount=Decimal("60"),
        created_at=_at_noon(date(2024, 5, 15)),
    )
    db_session.add_all([mirrored, consulting, invoice, office_rent, supplies])
    db_session.flush()

    may_payment = models.SubscriptionPayment(
        subscription=subscription,
        month=5,
        year=2024,
        amount=Decimal("500"),
        payment_status=models.PaymentStatus.PAID,
        financial_entry_id=mirrored.id,
    )
    db_session.add(may_payment)

    sales = [
        models.Sale(
            customer=bravo,
            title="Logo design",
            total=Decimal("150"),
            payment_status=models.PaymentStatus.PAID,
            payment_method="card",
            sold_at=date(2024, 5, 8),
            paid_at=date(2024, 5, 8),
        ),
        models.Sale(
            customer=bravo,
            title="Business cards",
            total=Decimal("50"),
            payment_status=models.PaymentStatus.PAID,
            payment_method="cash",
            sold_at=date(2024, 5, 18),
        ),
        models.Sale(
            customer=bravo,
            title="Logo design",
            total=Decimal("150"),
            payment_status=models.PaymentStatus.PAID,
            payment_method="card",
            sold_at=date(2024, 6, 3),
            paid_at=date(2024, 6, 3),
        ),
    ]
    db_session.add_all(sales)
    db_session.commit()

    return {
        "acme": acme,
        "bravo": bravo,
        "subscription": subscription,
        "mirrored_entry": mirrored,
        "may_payment": may_payment,
        "rent": rent,
    }
