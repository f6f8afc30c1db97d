from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.core.errors import BadRequestError
from src.shared.time import (
    PeriodWindow,
    current_period_coordinates,
    format_period_display,
    quarter_of_month,
    resolve_period_window,
)


@pytest.mark.parametrize(
    ("month", "quarter"),
    [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
)
def test_quarter_of_month(month, quarter):
    assert quarter_of_month(month) == quarter


def test_monthly_window_handles_leap_february():
    assert resolve_period_window("MONTHLY", 2024, month=2) == PeriodWindow(date(2024, 2, 1), date(2024, 2, 29))
    assert resolve_period_window("MONTHLY", 2023, month=2).end == date(2023, 2, 28)


def test_quarterly_and_yearly_windows():
    assert resolve_period_window("QUARTERLY", 2024, quarter=4) == PeriodWindow(
        date(2024, 10, 1), date(2024, 12, 31)
    )
    assert resolve_period_window("YEARLY", 2024) == PeriodWindow(date(2024, 1, 1), date(2024, 12, 31))


def test_window_bounds_are_inclusive():
    window = resolve_period_window("MONTHLY", 2024, month=3)

    assert window.contains(datetime(2024, 3, 1, 0, 0, 0))
    assert window.contains(datetime(2024, 3, 31, 23, 59, 59, 999999))
    assert not window.contains(datetime(2024, 4, 1, 0, 0, 0))
    assert not window.contains(date(2024, 2, 29))


def test_window_compares_aware_datetimes_in_utc():
    window = resolve_period_window("MONTHLY", 2024, month=3)
    ist = timezone(timedelta(hours=5, minutes=30))

    # 1 April 02:00 IST is still 31 March in UTC.
    assert window.contains(datetime(2024, 4, 1, 2, 0, tzinfo=ist))


def test_window_iso_bounds():
    window = resolve_period_window("MONTHLY", 2024, month=3)

    assert window.start_iso() == "2024-03-01T00:00:00+00:00"
    assert window.end_iso() == "2024-03-31T23:59:59.999999+00:00"


@pytest.mark.parametrize(
    ("period", "month", "quarter"),
    [("MONTHLY", None, None), ("MONTHLY", 13, None), ("QUARTERLY", None, 5), ("WEEKLY", None, None)],
)
def test_invalid_window_requests_raise(period, month, quarter):
    with pytest.raises(BadRequestError):
        resolve_period_window(period, 2024, month=month, quarter=quarter)


def test_period_display_labels():
    assert format_period_display("MONTHLY", 2024, month=3) == "Mar 2024"
    assert format_period_display("QUARTERLY", 2024, quarter=1) == "Q1 2024"
    assert format_period_display("YEARLY", 2024) == "2024"


def test_current_period_coordinates():
    assert current_period_coordinates(date(2024, 8, 15)) == (2024, 8, 3)
