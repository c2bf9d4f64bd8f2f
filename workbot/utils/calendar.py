"""Calendar helpers shared by the date generators, modifiers and resolver.

Week boundaries are Monday-Sunday (ISO week). Month-relative "weeks" are
7-day blocks counted from the 1st: week 1 = days 1-7, week 2 = days 8-14,
and so on. Negative block indices count 7-day blocks back from the last
day of the month.
"""

import calendar as _calendar
from datetime import date, timedelta
from typing import Literal

DayName = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
Period = Literal["this_month", "next_month"]

# Index matches date.weekday()
WEEKDAY_NAMES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MONTH_NAMES: tuple[str, ...] = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)


def week_start(d: date) -> date:
    """Return Monday of the calendar week containing d."""
    return d - timedelta(days=d.weekday())


def day_number(name: str) -> int | None:
    """Map a weekday name (any case) to date.weekday(), or None if unknown."""
    try:
        return WEEKDAY_NAMES.index(name.strip().lower())
    except ValueError:
        return None


def weekday_label(d: date) -> str:
    """Capitalised weekday name, e.g. "Monday"."""
    return WEEKDAY_NAMES[d.weekday()].capitalize()


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def days_in_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1].capitalize()} {year}"


def resolve_period(today: date, period: Period) -> tuple[int, int]:
    """Resolve a period reference to (year, month) relative to today.

    Args:
        today: Caller-supplied reference date
        period: "this_month" or "next_month"

    Returns:
        (year, month) tuple with month in 1..12

    Raises:
        ValueError: If period is not a known reference
    """
    if period == "this_month":
        return today.year, today.month
    if period == "next_month":
        if today.month == 12:
            return today.year + 1, 1
        return today.year, today.month + 1
    raise ValueError(f"Unknown period '{period}'. Expected 'this_month' or 'next_month'.")


def month_days(year: int, month: int, start: int = 1, end: int | None = None) -> list[date]:
    """Every calendar day of the month within [start, end], clamped to the month."""
    total = days_in_month(year, month)
    last = total if end is None else min(end, total)
    return [date(year, month, day) for day in range(max(start, 1), last + 1)]


def week_block_days(total: int, week: int) -> range:
    """Day numbers covered by a month-relative week block.

    Week k > 0 covers days 7k-6..7k. Week -k covers days
    total-7k+1..total-7k+7, so -1 is the last seven days of the month.
    Week 0 covers nothing. Results are clamped to 1..total.
    """
    if week > 0:
        first, last = 7 * week - 6, 7 * week
    elif week < 0:
        k = -week
        first, last = total - 7 * k + 1, total - 7 * k + 7
    else:
        return range(0)
    return range(max(first, 1), min(last, total) + 1)


def nth_occurrence(year: int, month: int, weekday: int, occurrence: int) -> int | None:
    """Day-of-month of the Nth occurrence of a weekday.

    Args:
        year: Calendar year
        month: Month 1..12
        weekday: date.weekday() value (0 = Monday)
        occurrence: 1 = first, 2 = second, -1 = last, -2 = second to last

    Returns:
        Day number, or None when the month has no such occurrence
    """
    hits = [d.day for d in month_days(year, month) if d.weekday() == weekday]
    if occurrence > 0 and occurrence <= len(hits):
        return hits[occurrence - 1]
    if occurrence < 0 and -occurrence <= len(hits):
        return hits[occurrence]
    return None
