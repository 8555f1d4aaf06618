"""Response shapes for the financial dashboard, reports and export."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WindowRead(BaseModel):
    start: date
    end: date

    model_config = ConfigDict(from_attributes=True)


class MonthBucketRead(BaseModel):
    """One month of paid income against paid expenses."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Decimal
    expenses: Decimal
    progress: Decimal = Field(..., ge=0)
    surplus: Decimal

    model_config = ConfigDict(from_attributes=True)


class BreakEvenRead(BaseModel):
    progress: Decimal = Field(..., ge=0)
    surplus: Decimal

    model_config = ConfigDict(from_attributes=True)


class FinancialSummaryRead(BaseModel):
    """Period totals shown on the report cards and in the PDF header."""

    paid_income: Decimal
    paid_income_from_entries: Decimal
    paid_subscription_income: Decimal
    pending_income: Decimal
    pending_income_from_entries: Decimal
    pending_subscription_income: Decimal
    paid_expenses: Decimal
    pending_expenses: Decimal
    profit: Decimal
    profit_margin: Decimal
    break_even_progress: Decimal = Field(..., ge=0)
    surplus_deficit: Decimal
    sales_count: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class CategoryTotalRead(BaseModel):
    category_id: Optional[int] = None
    name: str
    color: Optional[str] = None
    value: Decimal

    model_config = ConfigDict(from_attributes=True)


class CustomerSalesRankingRead(BaseModel):
    customer_id: str
    name: str
    total: Decimal
    count: int

    model_config = ConfigDict(from_attributes=True)


class CustomerSubscriptionRankingRead(BaseModel):
    customer_id: str
    name: str
    monthly_value: Decimal

    model_config = ConfigDict(from_attributes=True)


class FinancialReportResponse(BaseModel):
    """Full payload consumed by the reports view."""

    window: WindowRead
    as_of: date
    customer_id: Optional[str] = None
    summary: FinancialSummaryRead
    monthly: List[MonthBucketRead]
    categories: List[CategoryTotalRead] = Field(default_factory=list)
    top_customers_by_sales: List[CustomerSalesRankingRead] = Field(default_factory=list)
    top_customers_by_subscription: List[CustomerSubscriptionRankingRead] = Field(
        default_factory=list
    )

    model_config = ConfigDict(from_attributes=True)


class ReportExportResponse(BaseModel):
    """Report handed to the PDF generator."""

    type: str
    generated_at: datetime
    report: FinancialReportResponse

    model_config = ConfigDict(from_attributes=True)


class ReceivableItemRead(BaseModel):
    reference: str
    description: str
    amount: Decimal
    due_date: date
    status: str
    source: str
    customer_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MonthlyReceivableRead(BaseModel):
    month: str
    total: Decimal
    entries: List[ReceivableItemRead]

    model_config = ConfigDict(from_attributes=True)


class DashboardFinancialsResponse(BaseModel):
    """Figures behind the dashboard cards and the break-even grid."""

    as_of: date
    current_month: MonthBucketRead
    monthly: List[MonthBucketRead]
    year: BreakEvenRead
    annual_paid_income: Decimal
    annual_paid_expenses: Decimal
    pending_income_from_entries: Decimal
    pending_subscription_income: Decimal
    total_pending_income: Decimal
    total_pending_expenses: Decimal
    current_month_receivables: Optional[MonthlyReceivableRead] = None

    model_config = ConfigDict(from_attributes=True)
