"""Break-even ratio and profit figures derived from paid totals."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .records import ZERO

HUNDRED = Decimal("100")
# Reported when there is income but nothing to cover; consumers cap it.
NO_EXPENSES_PROGRESS = Decimal("200")
PERCENT_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class BreakEven:
    progress: Decimal
    surplus: Decimal


@dataclass(frozen=True)
class ProfitSummary:
    profit: Decimal
    profit_margin: Decimal
    progress: Decimal
    surplus: Decimal


@dataclass(frozen=True)
class MonthBucket:
    month: str
    income: Decimal
    expenses: Decimal
    progress: Decimal
    surplus: Decimal

    @classmethod
    def build(cls, month: str, income: Decimal, expenses: Decimal) -> "MonthBucket":
        result = break_even(income, expenses)
        return cls(
            month=month,
            income=income,
            expenses=expenses,
            progress=result.progress,
            surplus=result.surplus,
        )


def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    return (numerator / denominator * HUNDRED).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def break_even(paid_income: Decimal, paid_expenses: Decimal) -> BreakEven:
    """Income as a percentage of expenses, plus the surplus or deficit.

    >>> break_even(Decimal("50"), Decimal("100"))
    BreakEven(progress=Decimal('50.00'), surplus=Decimal('-50'))
    """

    if paid_expenses > ZERO:
        progress = _percent(paid_income, paid_expenses)
    elif paid_income > ZERO:
        progress = NO_EXPENSES_PROGRESS
    else:
        progress = ZERO
    return BreakEven(progress=progress, surplus=paid_income - paid_expenses)


def profit_summary(paid_income: Decimal, paid_expenses: Decimal) -> ProfitSummary:
    result = break_even(paid_income, paid_expenses)
    profit = paid_income - paid_expenses
    margin = _percent(profit, paid_income) if paid_income > ZERO else ZERO
    return ProfitSummary(
        profit=profit,
        profit_margin=margin,
        progress=result.progress,
        surplus=result.surplus,
    )


def rollup(buckets: Iterable[MonthBucket]) -> BreakEven:
    """Break-even over several months, computed from their summed totals."""

    income = ZERO
    expenses = ZERO
    for bucket in buckets:
        income += bucket.income
        expenses += bucket.expenses
    return break_even(income, expenses)
