"""Set operations over date lists.

These are the kernels behind both the modifier pipeline and the
composite generators, so a composite and its generator + modifier
decomposition share one implementation of each step. Every function
returns a subset of its input in the input's order.
"""

from collections.abc import Iterable
from datetime import date
from itertools import groupby

from workbot.utils.calendar import day_number, days_in_month, is_weekend, week_block_days, week_start


def weekday_numbers(names: Iterable[str]) -> tuple[set[int], list[str]]:
    """Split weekday names into recognised weekday numbers and rejected names."""
    numbers: set[int] = set()
    invalid: list[str] = []
    for name in names:
        number = day_number(name)
        if number is None:
            invalid.append(name)
        else:
            numbers.add(number)
    return numbers, invalid


def drop_weekends(dates: list[date]) -> list[date]:
    return [d for d in dates if not is_weekend(d)]


def drop_dates(dates: list[date], excluded: Iterable[date]) -> list[date]:
    excluded_set = set(excluded)
    return [d for d in dates if d not in excluded_set]


def drop_weekdays(dates: list[date], weekdays: set[int]) -> list[date]:
    return [d for d in dates if d.weekday() not in weekdays]


def keep_weekdays(dates: list[date], weekdays: set[int]) -> list[date]:
    return [d for d in dates if d.weekday() in weekdays]


def drop_day_range(dates: list[date], start_day: int, end_day: int) -> list[date]:
    return [d for d in dates if d.day < start_day or d.day > end_day]


def keep_day_range(dates: list[date], start_day: int, end_day: int) -> list[date]:
    return [d for d in dates if start_day <= d.day <= end_day]


def _in_week_blocks(d: date, weeks: Iterable[int]) -> bool:
    total = days_in_month(d.year, d.month)
    return any(d.day in week_block_days(total, week) for week in weeks)


def drop_week_blocks(dates: list[date], weeks: list[int]) -> list[date]:
    """Remove dates falling in any month-relative week block."""
    return [d for d in dates if not _in_week_blocks(d, weeks)]


def keep_week_blocks(dates: list[date], weeks: list[int]) -> list[date]:
    """Keep only dates falling in some month-relative week block."""
    return [d for d in dates if _in_week_blocks(d, weeks)]


def drop_working_days_count(dates: list[date], count: int, position: str) -> list[date]:
    """Remove the first or last `count` weekdays of the set."""
    working = sorted(d for d in dates if not is_weekend(d))
    if count <= 0:
        return list(dates)
    doomed = set(working[:count] if position == "first" else working[-count:])
    return [d for d in dates if d not in doomed]


def slice_per_week(dates: list[date], count: int, position: str) -> list[date]:
    """Keep the first or last `count` dates of every Monday-Sunday week."""
    if count <= 0:
        return []
    kept: list[date] = []
    for _, week in groupby(sorted(dates), key=week_start):
        members = list(week)
        kept.extend(members[:count] if position == "first" else members[-count:])
    return kept


def alternate(dates: list[date]) -> list[date]:
    """Keep every other element of the sequence, starting with the first."""
    return dates[::2]
