"""Financial figures served to the dashboard, the reports view and the PDF export."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from .. import models
from ..settings import FinancialSettings, get_financial_settings
from .aggregation import (
    PeriodAggregate,
    aggregate,
    expenses_by_category,
    outstanding_expenses,
    outstanding_income,
)
from .break_even import BreakEven, MonthBucket, profit_summary, rollup
from .customer_rollup import CustomerProfile, customer_profile
from .obligations import MonthlyReceivable, monthly_receivables, project_pending
from .periods import DateWindow, period_key, year_window
from .reconciliation import build_shadow_set
from .record_store import RecordStore
from .records import (
    ZERO,
    FinancialEntryRecord,
    RecordSnapshot,
    SaleRecord,
    SubscriptionPaymentRecord,
    SubscriptionRecord,
)

LOGGER = logging.getLogger(__name__)


class CustomerNotFoundError(LookupError):
    """Raised when a profile is requested for an unknown customer."""


@dataclass(frozen=True)
class FinancialSummary:
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
    break_even_progress: Decimal
    surplus_deficit: Decimal
    sales_count: int


@dataclass(frozen=True)
class CategoryTotal:
    category_id: int | None
    name: str
    color: str | None
    value: Decimal


@dataclass(frozen=True)
class CustomerSalesRanking:
    customer_id: str
    name: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class CustomerSubscriptionRanking:
    customer_id: str
    name: str
    monthly_value: Decimal


@dataclass(frozen=True)
class FinancialReport:
    window: DateWindow
    as_of: date
    customer_id: str | None
    summary: FinancialSummary
    monthly: tuple[MonthBucket, ...]
    categories: tuple[CategoryTotal, ...]
    top_customers_by_sales: tuple[CustomerSalesRanking, ...]
    top_customers_by_subscription: tuple[CustomerSubscriptionRanking, ...]


@dataclass(frozen=True)
class ReportExport:
    type: str
    generated_at: datetime
    report: FinancialReport


@dataclass(frozen=True)
class DashboardFinancials:
    as_of: date
    current_month: MonthBucket
    monthly: tuple[MonthBucket, ...]
    year: BreakEven
    annual_paid_income: Decimal
    annual_paid_expenses: Decimal
    pending_income_from_entries: Decimal
    pending_subscription_income: Decimal
    total_pending_income: Decimal
    total_pending_expenses: Decimal
    current_month_receivables: MonthlyReceivable | None


@dataclass(frozen=True)
class _ScopedRecords:
    entries: Sequence[FinancialEntryRecord]
    subscriptions: Sequence[SubscriptionRecord]
    subscription_payments: Sequence[SubscriptionPaymentRecord]
    sales: Sequence[SaleRecord]


def _scope_to_customer(snapshot: RecordSnapshot, customer_id: Optional[str]) -> _ScopedRecords:
    if customer_id is None:
        return _ScopedRecords(
            entries=snapshot.entries,
            subscriptions=snapshot.subscriptions,
            subscription_payments=snapshot.subscription_payments,
            sales=snapshot.sales,
        )
    subscriptions = [s for s in snapshot.subscriptions if s.customer_id == customer_id]
    subscription_ids = {s.id for s in subscriptions}
    return _ScopedRecords(
        entries=[e for e in snapshot.entries if e.customer_id == customer_id],
        subscriptions=subscriptions,
        subscription_payments=[
            p for p in snapshot.subscription_payments if p.subscription_id in subscription_ids
        ],
        sales=[s for s in snapshot.sales if s.customer_id == customer_id],
    )


class FinancialReportService:
    """Runs the engine over one snapshot and shapes the result per consumer."""

    @staticmethod
    def _customer_names(db: Session) -> Dict[str, str]:
        return {str(row.id): row.name for row in db.query(models.Customer).all()}

    @staticmethod
    def _category_totals(
        db: Session, entries: Iterable[FinancialEntryRecord], window: DateWindow
    ) -> tuple[CategoryTotal, ...]:
        categories = {row.id: row for row in db.query(models.ExpenseCategory).all()}
        totals = []
        for category_id, value in expenses_by_category(entries, window).items():
            if value <= ZERO:
                continue
            category = categories.get(category_id)
            totals.append(
                CategoryTotal(
                    category_id=category_id,
                    name=category.name if category is not None else "Uncategorized",
                    color=category.color if category is not None else None,
                    value=value,
                )
            )
        totals.sort(key=lambda item: item.value, reverse=True)
        return tuple(totals)

    @staticmethod
    def _top_customers_by_sales(
        sales: Iterable[SaleRecord],
        window: DateWindow,
        names: Dict[str, str],
        limit: int,
    ) -> tuple[CustomerSalesRanking, ...]:
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        counts: Dict[str, int] = defaultdict(int)
        for sale in sales:
            if not sale.customer_id or sale.customer_id not in names:
                continue
            if not window.contains(sale.sold_at):
                continue
            totals[sale.customer_id] += sale.total
            counts[sale.customer_id] += 1
        ranking = [
            CustomerSalesRanking(
                customer_id=customer_id,
                name=names[customer_id],
                total=total,
                count=counts[customer_id],
            )
            for customer_id, total in totals.items()
        ]
        ranking.sort(key=lambda item: item.total, reverse=True)
        return tuple(ranking[:limit])

    @staticmethod
    def _top_customers_by_subscription(
        subscriptions: Iterable[SubscriptionRecord],
        names: Dict[str, str],
        limit: int,
    ) -> tuple[CustomerSubscriptionRanking, ...]:
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for subscription in subscriptions:
            if not subscription.is_active:
                continue
            if not subscription.customer_id or subscription.customer_id not in names:
                continue
            totals[subscription.customer_id] += subscription.monthly_value
        ranking = [
            CustomerSubscriptionRanking(
                customer_id=customer_id,
                name=names[customer_id],
                monthly_value=value,
            )
            for customer_id, value in totals.items()
        ]
        ranking.sort(key=lambda item: item.monthly_value, reverse=True)
        return tuple(ranking[:limit])

    @staticmethod
    def _summarize(
        period: PeriodAggregate,
        pending_subscription_income: Decimal,
        sales_count: int,
    ) -> FinancialSummary:
        figures = profit_summary(period.paid_income, period.paid_expenses)
        return FinancialSummary(
            paid_income=period.paid_income,
            paid_income_from_entries=period.paid_income_from_entries,
            paid_subscription_income=period.paid_subscription_income,
            pending_income=period.pending_income + pending_subscription_income,
            pending_income_from_entries=period.pending_income,
            pending_subscription_income=pending_subscription_income,
            paid_expenses=period.paid_expenses,
            pending_expenses=period.pending_expenses,
            profit=figures.profit,
            profit_margin=figures.profit_margin,
            break_even_progress=figures.progress,
            surplus_deficit=figures.surplus,
            sales_count=sales_count,
        )

    @staticmethod
    def build_report(
        db: Session,
        snapshot: RecordSnapshot,
        window: DateWindow,
        *,
        as_of: date,
        customer_id: Optional[str] = None,
        settings: Optional[FinancialSettings] = None,
    ) -> FinancialReport:
        settings = settings or get_financial_settings()
        shadow_set = build_shadow_set(snapshot.subscription_payments)
        scoped = _scope_to_customer(snapshot, customer_id)

        period = aggregate(scoped.entries, scoped.subscription_payments, shadow_set, window)
        pending_subscriptions = project_pending(
            scoped.subscriptions,
            scoped.subscription_payments,
            as_of,
            settings.horizon_months,
        )
        sales_count = sum(1 for sale in scoped.sales if window.contains(sale.sold_at))
        names = FinancialReportService._customer_names(db)

        return FinancialReport(
            window=window,
            as_of=as_of,
            customer_id=customer_id,
            summary=FinancialReportService._summarize(period, pending_subscriptions, sales_count),
            monthly=period.monthly,
            categories=FinancialReportService._category_totals(db, scoped.entries, window),
            top_customers_by_sales=FinancialReportService._top_customers_by_sales(
                scoped.sales, window, names, settings.ranking_limit
            ),
            top_customers_by_subscription=FinancialReportService._top_customers_by_subscription(
                scoped.subscriptions, names, settings.ranking_limit
            ),
        )

    @staticmethod
    def report(
        db: Session,
        window: DateWindow,
        *,
        as_of: date,
        customer_id: Optional[str] = None,
    ) -> FinancialReport:
        """Summary, monthly series and rankings for the reports screen."""

        snapshot = RecordStore.load_snapshot(db, window=window)
        LOGGER.info(
            "Building financial report for %s..%s (customer=%s)",
            window.start,
            window.end,
            customer_id or "all",
        )
        return FinancialReportService.build_report(
            db, snapshot, window, as_of=as_of, customer_id=customer_id
        )

    @staticmethod
    def export_payload(
        db: Session,
        window: DateWindow,
        *,
        as_of: date,
        customer_id: Optional[str] = None,
    ) -> ReportExport:
        """The report handed to the PDF generator; the figures are the report's own."""

        report = FinancialReportService.report(db, window, as_of=as_of, customer_id=customer_id)
        return ReportExport(
            type="financial",
            generated_at=datetime.now(timezone.utc),
            report=report,
        )

    @staticmethod
    def dashboard(db: Session, *, as_of: date) -> DashboardFinancials:
        """Current-month card, the year's month grid and outstanding totals."""

        settings = get_financial_settings()
        snapshot = RecordStore.load_snapshot(db)
        shadow_set = build_shadow_set(snapshot.subscription_payments)

        year = aggregate(snapshot.entries, snapshot.subscription_payments, shadow_set, year_window(as_of))
        current_key = period_key(as_of)
        current_month = next(
            (bucket for bucket in year.monthly if bucket.month == current_key),
            MonthBucket.build(current_key, ZERO, ZERO),
        )

        pending_entries = outstanding_income(snapshot.entries, shadow_set)
        pending_subscriptions = project_pending(
            snapshot.subscriptions,
            snapshot.subscription_payments,
            as_of,
            settings.horizon_months,
        )
        receivables = monthly_receivables(
            snapshot.entries,
            snapshot.subscriptions,
            snapshot.subscription_payments,
            shadow_set,
            as_of,
            settings.horizon_months,
            default_payment_day=settings.default_payment_day,
        )
        current_receivables = next(
            (item for item in receivables if item.month == current_key), None
        )

        LOGGER.info("Built dashboard financials as of %s", as_of)
        return DashboardFinancials(
            as_of=as_of,
            current_month=current_month,
            monthly=year.monthly,
            year=rollup(year.monthly),
            annual_paid_income=year.paid_income,
            annual_paid_expenses=year.paid_expenses,
            pending_income_from_entries=pending_entries,
            pending_subscription_income=pending_subscriptions,
            total_pending_income=pending_entries + pending_subscriptions,
            total_pending_expenses=outstanding_expenses(snapshot.entries),
            current_month_receivables=current_receivables,
        )

    @staticmethod
    def monthly(
        db: Session,
        window: DateWindow,
        *,
        customer_id: Optional[str] = None,
    ) -> List[MonthBucket]:
        snapshot = RecordStore.load_snapshot(db, window=window)
        shadow_set = build_shadow_set(snapshot.subscription_payments)
        scoped = _scope_to_customer(snapshot, customer_id)
        period = aggregate(scoped.entries, scoped.subscription_payments, shadow_set, window)
        return list(period.monthly)

    @staticmethod
    def receivables(db: Session, *, as_of: date) -> List[MonthlyReceivable]:
        settings = get_financial_settings()
        snapshot = RecordStore.load_snapshot(db)
        shadow_set = build_shadow_set(snapshot.subscription_payments)
        return monthly_receivables(
            snapshot.entries,
            snapshot.subscriptions,
            snapshot.subscription_payments,
            shadow_set,
            as_of,
            settings.horizon_months,
            default_payment_day=settings.default_payment_day,
        )

    @staticmethod
    def customer_profile(db: Session, customer_id: str, window: DateWindow) -> CustomerProfile:
        customer = db.query(models.Customer).filter(models.Customer.id == customer_id).first()
        if customer is None:
            raise CustomerNotFoundError(customer_id)

        settings = get_financial_settings()
        snapshot = RecordStore.load_snapshot(db, window=window)
        return customer_profile(
            str(customer.id),
            snapshot.entries,
            snapshot.sales,
            snapshot.subscriptions,
            snapshot.subscription_payments,
            window,
            ranking_limit=settings.ranking_limit,
        )
