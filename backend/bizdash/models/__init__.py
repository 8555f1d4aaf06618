"""Expose SQLAlchemy models for convenient imports."""

from .customer import Customer
from .financial_entry import EntryType, ExpenseCategory, FinancialEntry, PaymentStatus
from .sale import Sale
from .subscription import Subscription, SubscriptionPayment

__all__ = [
    "Customer",
    "EntryType",
    "ExpenseCategory",
    "FinancialEntry",
    "PaymentStatus",
    "Sale",
    "Subscription",
    "SubscriptionPayment",
]
