"""Service layer: the financial engine and the services that feed it."""

from .aggregation import PeriodAggregate, aggregate
from .break_even import BreakEven, MonthBucket, ProfitSummary, break_even, profit_summary
from .customer_rollup import CustomerProfile, customer_profile
from .financial_reports import CustomerNotFoundError, FinancialReportService
from .obligations import MonthlyReceivable, monthly_receivables, project_obligations, project_pending
from .periods import DateWindow, InvalidWindowError
from .reconciliation import build_shadow_set
from .record_store import RecordStore

__all__ = [
    "BreakEven",
    "CustomerNotFoundError",
    "CustomerProfile",
    "DateWindow",
    "FinancialReportService",
    "InvalidWindowError",
    "MonthBucket",
    "MonthlyReceivable",
    "PeriodAggregate",
    "ProfitSummary",
    "RecordStore",
    "aggregate",
    "break_even",
    "build_shadow_set",
    "customer_profile",
    "monthly_receivables",
    "profit_summary",
    "project_obligations",
    "project_pending",
]
