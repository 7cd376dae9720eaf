# finance_tracker/timeutil.py
"""Nanosecond timestamps <-> calendar dates, always in UTC."""

from __future__ import annotations

import time
from calendar import monthrange
from datetime import date, datetime, timedelta

from finance_tracker.core.errors import InvalidDate

NS_PER_MS = 1_000_000
NS_PER_DAY = 86_400 * 1_000_000_000
_EPOCH = date(1970, 1, 1)


def nanos_to_calendar_date(ns: int) -> date:
    """UTC calendar day containing the timestamp."""
    return _EPOCH + timedelta(days=int(ns) // NS_PER_DAY)


def calendar_date_to_nanos(day: date) -> int:
    """UTC midnight of *day*, in nanoseconds."""
    if isinstance(day, datetime):
        day = day.date()
    return (day - _EPOCH).days * NS_PER_DAY


def start_of_day_nanos(day: date) -> int:
    return calendar_date_to_nanos(day)


def end_of_day_nanos(day: date) -> int:
    """23:59:59.999 UTC of *day*."""
    return calendar_date_to_nanos(day) + NS_PER_DAY - NS_PER_MS


def parse_input_date(value) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif not value or not str(value).strip():
        raise InvalidDate("Please select a date")
    else:
        try:
            parsed = date.fromisoformat(str(value).strip())
        except ValueError:
            raise InvalidDate(f"Invalid date '{value}', expected YYYY-MM-DD") from None
    if parsed < _EPOCH:
        raise InvalidDate(f"Date {parsed.isoformat()} is before 1970-01-01")
    return parsed


def format_date(ns: int) -> str:
    """``Jan 15, 2024``"""
    return format_calendar_date(nanos_to_calendar_date(ns))


def format_calendar_date(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def format_date_for_input(ns: int) -> str:
    return nanos_to_calendar_date(ns).isoformat()


def now_nanos() -> int:
    return time.time_ns()


def today_utc() -> date:
    return nanos_to_calendar_date(now_nanos())


def months_before(day: date, months: int) -> date:
    """Same day-of-month *months* earlier, clamped to the month's length."""
    month_index = day.month - 1 - months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))
