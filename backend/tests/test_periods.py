from __future__ import annotations

from datetime import date

import pytest

from backend.bizdash.services.periods import (
    DateWindow,
    InvalidWindowError,
    add_months,
    month_window,
    parse_period_key,
    period_key,
    resolve_window,
)


def test_window_rejects_start_after_end():
    with pytest.raises(InvalidWindowError, match="start_date cannot be after end_date"):
        DateWindow(date(2024, 5, 2), date(2024, 5, 1))


def test_window_contains_is_inclusive_and_ignores_missing_dates():
    window = DateWindow(date(2024, 5, 1), date(2024, 5, 31))

    assert window.contains(date(2024, 5, 1))
    assert window.contains(date(2024, 5, 31))
    assert not window.contains(date(2024, 6, 1))
    assert not window.contains(None)


def test_window_months_are_clipped_to_the_window():
    window = DateWindow(date(2024, 1, 15), date(2024, 3, 10))

    months = list(window.months())

    assert [period_key(month.start) for month in months] == ["2024-01", "2024-02", "2024-03"]
    assert months[0].start == date(2024, 1, 15)
    assert months[1] == DateWindow(date(2024, 2, 1), date(2024, 2, 29))
    assert months[-1].end == date(2024, 3, 10)


def test_add_months_clamps_day_to_target_month():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 3, 15), 12) == date(2025, 3, 15)
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)


def test_parse_period_key_returns_month_window():
    assert parse_period_key("2024-02") == DateWindow(date(2024, 2, 1), date(2024, 2, 29))


@pytest.mark.parametrize("key", ["2024/05", "2024-13", "24-05", "abc"])
def test_parse_period_key_rejects_malformed_keys(key):
    with pytest.raises(ValueError, match="Invalid period key format, expected YYYY-MM"):
        parse_period_key(key)


def test_resolve_window_defaults_to_as_of_month():
    assert resolve_window(None, None, as_of=date(2024, 3, 15)) == month_window(date(2024, 3, 1))


def test_resolve_window_fills_missing_bound_from_the_other():
    assert resolve_window(date(2024, 3, 10), None, as_of=date(2024, 1, 1)) == DateWindow(
        date(2024, 3, 10), date(2024, 3, 31)
    )
    assert resolve_window(None, date(2024, 3, 10), as_of=date(2024, 1, 1)) == DateWindow(
        date(2024, 3, 1), date(2024, 3, 10)
    )
