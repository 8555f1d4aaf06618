"""SQLAlchemy model definitions for ledger entries and expense categories."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID


class EntryType(str, enum.Enum):
    """Direction of a ledger movement."""

    INCOME = "income"
    EXPENSE = "expense"


class PaymentStatus(str, enum.Enum):
    """Settlement state shared by ledger entries, sales and subscription payments."""

    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"


class ExpenseCategory(Base):
    """Catalog of expense categories used by the reports breakdown."""

    __tablename__ = "expense_categories"

    id = Column("expense_category_id", Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    entries = relationship("FinancialEntry", back_populates="category")


class FinancialEntry(Base):
    """A single recorded income or expense movement."""

    __tablename__ = "financial_entries"

    id = Column("financial_entry_id", GUID(), primary_key=True, default=uuid.uuid4)
    type = Column(
        Enum(
            EntryType,
            name="financial_entry_type_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(
        Enum(
            PaymentStatus,
            name="financial_entry_payment_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    remaining_amount = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    due_date = Column(Date, nullable=True)
    paid_at = Column(Date, nullable=True)
    customer_id = Column(
        GUID(),
        ForeignKey("customers.customer_id", ondelete="SET NULL"),
        nullable=True,
    )
    category_id = Column(
        Integer,
        ForeignKey("expense_categories.expense_category_id", ondelete="SET NULL"),
        nullable=True,
    )

    customer = relationship("Customer", back_populates="financial_entries")
    category = relationship("ExpenseCategory", back_populates="entries")


Index("financial_entries_type_status_idx", FinancialEntry.type, FinancialEntry.payment_status)
Index("financial_entries_paid_at_idx", FinancialEntry.paid_at)
Index("financial_entries_customer_idx", FinancialEntry.customer_id)
