from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from math import ceil
from typing import NamedTuple, Optional

from src.core.errors import BadRequestError

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class PeriodWindow(NamedTuple):
    """Inclusive calendar window; both boundary days count as inside."""

    start: date
    end: date

    def contains(self, moment: date | datetime) -> bool:
        return self.start <= _utc_date(moment) <= self.end

    def start_iso(self) -> str:
        return datetime.combine(self.start, time.min, tzinfo=timezone.utc).isoformat()

    def end_iso(self) -> str:
        return datetime.combine(self.end, time.max, tzinfo=timezone.utc).isoformat()


def _utc_date(moment: date | datetime) -> date:
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        return moment.date()
    return moment


def quarter_of_month(month: int) -> int:
    return ceil(month / 3)


def quarter_months(quarter: int) -> tuple[int, int]:
    first_month = (quarter - 1) * 3 + 1
    return first_month, first_month + 2


def resolve_period_window(
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
) -> PeriodWindow:
    if period == "MONTHLY":
        if month is None or not 1 <= month <= 12:
            raise BadRequestError("Monthly window requires a month between 1 and 12")
        last_day = calendar.monthrange(year, month)[1]
        return PeriodWindow(date(year, month, 1), date(year, month, last_day))
    if period == "QUARTERLY":
        if quarter is None or not 1 <= quarter <= 4:
            raise BadRequestError("Quarterly window requires a quarter between 1 and 4")
        first_month, last_month = quarter_months(quarter)
        last_day = calendar.monthrange(year, last_month)[1]
        return PeriodWindow(date(year, first_month, 1), date(year, last_month, last_day))
    if period == "YEARLY":
        return PeriodWindow(date(year, 1, 1), date(year, 12, 31))
    raise BadRequestError(f"Unsupported period: {period}")


def format_period_display(
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
) -> str:
    if period == "MONTHLY":
        return f"{MONTH_LABELS[(month or 1) - 1]} {year}"
    if period == "QUARTERLY":
        return f"Q{quarter} {year}"
    return str(year)


def current_period_coordinates(today: Optional[date] = None) -> tuple[int, int, int]:
    today = today or date.today()
    return today.year, today.month, quarter_of_month(today.month)


class ReportingPeriod(NamedTuple):
    period: str
    year: int
    month: Optional[int]
    quarter: Optional[int]
    window: PeriodWindow


def resolve_reporting_period(
    period: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
    today: Optional[date] = None,
) -> ReportingPeriod:
    """Fill unset coordinates from ``today`` and drop the ones ``period`` does not use."""
    current_year, current_month, current_quarter = current_period_coordinates(today)
    year = year or current_year
    month = (month or current_month) if period == "MONTHLY" else None
    quarter = (quarter or current_quarter) if period == "QUARTERLY" else None
    return ReportingPeriod(period, year, month, quarter, resolve_period_window(period, year, month, quarter))
