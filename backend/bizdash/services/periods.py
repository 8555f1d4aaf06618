"""Calendar helpers shared by the aggregation and projection services."""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from typing import Iterator


class InvalidWindowError(ValueError):
    """Raised when a reporting window ends before it starts."""


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range used to scope aggregations."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidWindowError("start_date cannot be after end_date")

    def contains(self, value: date | None) -> bool:
        if value is None:
            return False
        return self.start <= value <= self.end

    def clip(self, other: "DateWindow") -> "DateWindow":
        """Return the intersection of both windows; they must overlap."""

        return DateWindow(max(self.start, other.start), min(self.end, other.end))

    def months(self) -> Iterator["DateWindow"]:
        """Yield one window per calendar month touched, clipped to this window."""

        for month_start in iter_month_starts(self.start, self.end):
            yield month_window(month_start).clip(self)


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    _, last_day = monthrange(value.year, value.month)
    return value.replace(day=last_day)


def month_window(value: date) -> DateWindow:
    return DateWindow(month_start(value), month_end(value))


def year_window(value: date) -> DateWindow:
    return DateWindow(date(value.year, 1, 1), date(value.year, 12, 31))


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the target month."""

    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    _, last_day = monthrange(year, month)
    return date(year, month, min(value.day, last_day))


def iter_month_starts(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from ``start``'s month to ``end``'s month."""

    cursor = month_start(start)
    while cursor <= end:
        yield cursor
        cursor = add_months(cursor, 1)


def period_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def parse_period_key(key: str) -> DateWindow:
    """Return the month window for a ``YYYY-MM`` key.

    Raises ``ValueError`` with the same message the backoffice uses for
    malformed billing period keys.
    """

    if not key:
        raise ValueError("period_key is required")

    try:
        year_str, month_str = key.split("-", maxsplit=1)
        year = int(year_str)
        month = int(month_str)
    except ValueError as exc:
        raise ValueError("Invalid period key format, expected YYYY-MM") from exc

    if month < 1 or month > 12 or len(year_str) != 4:
        raise ValueError("Invalid period key format, expected YYYY-MM")

    return month_window(date(year, month, 1))


def resolve_window(
    start_date: date | None,
    end_date: date | None,
    *,
    as_of: date,
) -> DateWindow:
    """Build a window from optional bounds, defaulting to the ``as_of`` month."""

    if start_date is None and end_date is None:
        return month_window(as_of)
    if start_date is None:
        start_date = month_start(end_date)
    if end_date is None:
        end_date = month_end(start_date)
    return DateWindow(start_date, end_date)
