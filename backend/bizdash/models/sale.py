"""SQLAlchemy model definitions for sales."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID
from .financial_entry import PaymentStatus


class Sale(Base):
    """A one-off sale, a revenue channel independent from the ledger."""

    __tablename__ = "sales"

    id = Column("sale_id", GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        GUID(),
        ForeignKey("customers.customer_id", ondelete="SET NULL"),
        nullable=True,
    )
    title = Column(String, nullable=False)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(
        Enum(
            PaymentStatus,
            name="sale_payment_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method = Column(String(50), nullable=True)
    sold_at = Column(Date, nullable=False)
    paid_at = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="sales")


Index("sales_customer_sold_idx", Sale.customer_id, Sale.sold_at)
