"""Model definitions for recurring subscriptions and their monthly payments."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID
from .financial_entry import PaymentStatus


class Subscription(Base):
    """A recurring revenue agreement billed once per calendar month."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("monthly_value >= 0", name="ck_subscriptions_monthly_value_non_negative"),
        CheckConstraint(
            "payment_day IS NULL OR (payment_day >= 1 AND payment_day <= 31)",
            name="ck_subscriptions_payment_day_range",
        ),
    )

    id = Column("subscription_id", GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        GUID(),
        ForeignKey("customers.customer_id", ondelete="SET NULL"),
        nullable=True,
    )
    title = Column(String, nullable=False)
    monthly_value = Column(Numeric(12, 2), nullable=False, default=0)
    start_date = Column(Date, nullable=False, default=date.today)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    payment_day = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="subscriptions")
    payments = relationship(
        "SubscriptionPayment",
        back_populates="subscription",
        cascade="all, delete-orphan",
    )


class SubscriptionPayment(Base):
    """The realized or skipped instance of a subscription for one month."""

    __tablename__ = "subscription_payments"
    __table_args__ = (
        UniqueConstraint(
            "subscription_id", "month", "year", name="uq_subscription_payments_period"
        ),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_subscription_payments_month_range"),
    )

    id = Column("subscription_payment_id", GUID(), primary_key=True, default=uuid.uuid4)
    subscription_id = Column(
        GUID(),
        ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
        nullable=False,
    )
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(
        Enum(
            PaymentStatus,
            name="subscription_payment_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    paid_at = Column(Date, nullable=True)
    # Not a foreign key: the ledger row may be deleted and the id left behind.
    financial_entry_id = Column(GUID(), nullable=True)
    is_skipped = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    subscription = relationship("Subscription", back_populates="payments")


Index("subscriptions_customer_idx", Subscription.customer_id)
Index("subscription_payments_entry_idx", SubscriptionPayment.financial_entry_id)
