"""Expose Pydantic schemas for convenient imports."""

from .customer import (
    CustomerFinancialsRead,
    CustomerProfileResponse,
    MonthlyRevenueRead,
    PurchasedItemRead,
)
from .financial import (
    BreakEvenRead,
    CategoryTotalRead,
    CustomerSalesRankingRead,
    CustomerSubscriptionRankingRead,
    DashboardFinancialsResponse,
    FinancialReportResponse,
    FinancialSummaryRead,
    MonthBucketRead,
    MonthlyReceivableRead,
    ReceivableItemRead,
    ReportExportResponse,
    WindowRead,
)

__all__ = [
    "BreakEvenRead",
    "CategoryTotalRead",
    "CustomerFinancialsRead",
    "CustomerProfileResponse",
    "CustomerSalesRankingRead",
    "CustomerSubscriptionRankingRead",
    "DashboardFinancialsResponse",
    "FinancialReportResponse",
    "FinancialSummaryRead",
    "MonthBucketRead",
    "MonthlyReceivableRead",
    "MonthlyRevenueRead",
    "PurchasedItemRead",
    "ReceivableItemRead",
    "ReportExportResponse",
    "WindowRead",
]
