from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .financial import MonthBucketRead, WindowRead


class CustomerFinancialsRead(BaseModel):
    paid_income_from_entries: Decimal
    paid_subscription_income: Decimal
    pending_income: Decimal
    paid_expenses: Decimal
    pending_expenses: Decimal
    monthly: List[MonthBucketRead]

    model_config = ConfigDict(from_attributes=True)


class PurchasedItemRead(BaseModel):
    description: str
    quantity: int
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class MonthlyRevenueRead(BaseModel):
    month: str
    value: Decimal

    model_config = ConfigDict(from_attributes=True)


class CustomerProfileResponse(BaseModel):
    """Revenue profile for a single customer."""

    customer_id: str
    window: WindowRead
    financials: CustomerFinancialsRead
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
    top_items: List[PurchasedItemRead]
    monthly_history: List[MonthlyRevenueRead]
    preferred_payment_method: Optional[str] = None
    first_purchase: Optional[date] = None
    last_purchase: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)
