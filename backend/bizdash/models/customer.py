"""SQLAlchemy model definitions for customers."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID


class Customer(Base):
    """Represents a customer of the business."""

    __tablename__ = "customers"

    id = Column("customer_id", GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    financial_entries = relationship("FinancialEntry", back_populates="customer")
    subscriptions = relationship("Subscription", back_populates="customer")
    sales = relationship("Sale", back_populates="customer")
