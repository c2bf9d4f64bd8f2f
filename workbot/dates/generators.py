"""Date generators: pure functions from (reference date, params) to dates.

Each generator takes the caller's reference date and a validated params
model and returns a GeneratorResult. None of them read the clock or touch
storage. Unless registered as weekend-aware, a generator only returns
Monday-Friday dates.

Composite generators are built from the same kernels the modifier
pipeline uses (see workbot.dates.filters), so each composite agrees with
its base generator + modifier decomposition.
"""

import re
from datetime import date, timedelta
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictInt, StrictStr

from workbot.dates import filters
from workbot.dates.types import GeneratorResult
from workbot.utils.calendar import (
    DayName,
    Period,
    day_number,
    days_in_month,
    month_days,
    month_label,
    nth_occurrence,
    resolve_period,
    week_start,
)

Position = Literal["first", "last"]
Half = Literal["first", "second"]
AlternateType = Literal["calendar", "working"]
Direction = Literal["on_and_after", "on_and_before", "after", "before", "between"]

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_RELATIVE_RE = re.compile(r"^(next|this)\s+(\w+)$")


# ---------------------------------------------------------------------------
# Parameter models
# ---------------------------------------------------------------------------


def _lower(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Day names arrive in whatever case the proposer chose
Day = Annotated[DayName, BeforeValidator(_lower)]


class GeneratorParams(BaseModel):
    """Base for generator parameter models.

    Unknown keys are ignored; known keys must have the exact JSON type.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)


class ResolveDatesParams(GeneratorParams):
    dates: list[StrictStr] = Field(min_length=1)


class EmptyParams(GeneratorParams):
    pass


class PeriodParams(GeneratorParams):
    period: Period


class SliceParams(PeriodParams):
    count: StrictInt = Field(ge=1)
    position: Position


class DayOfWeekParams(PeriodParams):
    day: Day


class MultipleDaysOfWeekParams(PeriodParams):
    days: list[StrictStr] = Field(min_length=1)


class RangeParams(PeriodParams):
    start_day: StrictInt
    end_day: StrictInt


class AlternateParams(PeriodParams):
    type: AlternateType


class HalfMonthParams(PeriodParams):
    half: Half


class ExceptParams(PeriodParams):
    exclude_day: Day


class EveryNthParams(PeriodParams):
    n: StrictInt = Field(ge=1)
    start_day: StrictInt = Field(default=1, ge=1)


class WeekPeriodParams(GeneratorParams):
    week: Literal["this_week", "next_week"]


class SpecificWeeksParams(PeriodParams):
    weeks: list[StrictInt] = Field(min_length=1)


class AnchorRangeParams(PeriodParams):
    anchor_day: Day
    anchor_occurrence: StrictInt
    direction: Direction
    end_day: Day | None = None
    end_occurrence: StrictInt | None = None


class HalfExceptDayParams(HalfMonthParams):
    exclude_day: Day


class RangeExceptDaysParams(RangeParams):
    exclude_days: list[StrictStr] = Field(min_length=1)


class RangeDaysOfWeekParams(RangeParams):
    days: list[StrictStr] = Field(min_length=1)


class NWorkingDaysExceptParams(SliceParams):
    exclude_days: list[StrictStr]


class OrdinalDay(GeneratorParams):
    ordinal: StrictInt
    day: Day


class OrdinalDayOfWeekParams(PeriodParams):
    ordinals: list[OrdinalDay] = Field(min_length=1)


class MonthExceptWeeksParams(PeriodParams):
    exclude_weeks: list[StrictInt] = Field(min_length=1)


class MonthExceptRangeParams(PeriodParams):
    exclude_start: StrictInt
    exclude_end: StrictInt


class RangeAlternateParams(RangeParams):
    type: AlternateType


class NDaysFromOrdinalParams(PeriodParams):
    ordinal: StrictInt
    day: Day
    count: StrictInt = Field(ge=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ok(dates: list[date], description: str, error: str | None = None) -> GeneratorResult:
    return GeneratorResult(success=True, dates=sorted(set(dates)), description=description, error=error)


def _fail(error: str) -> GeneratorResult:
    return GeneratorResult(success=False, dates=[], description="", error=error)


def _weekdays(today: date, period: Period, start: int = 1, end: int | None = None) -> tuple[list[date], str]:
    year, month = resolve_period(today, period)
    return filters.drop_weekends(month_days(year, month, start, end)), month_label(year, month)


def _working_slice(weekdays: list[date], count: int, position: Position) -> list[date]:
    return weekdays[:count] if position == "first" else weekdays[-count:]


def next_occurrence(today: date, weekday: int, include_today: bool = False) -> date:
    """Next date with the given weekday, strictly after today unless include_today."""
    offset = (weekday - today.weekday()) % 7
    if offset == 0 and not include_today:
        offset = 7
    return today + timedelta(days=offset)


def resolve_date_token(token: str, today: date) -> date | None:
    """Resolve one explicit date token relative to today.

    Accepts calendar-checked ISO dates, "today", "tomorrow",
    "next <weekday>" (strictly after today), "this <weekday>" (today or
    later, never past) and a bare weekday (same as "next").

    Returns:
        The resolved date, or None when the token is not recognised
    """
    lower = token.strip().lower()
    if _ISO_RE.match(lower):
        try:
            return date.fromisoformat(lower)
        except ValueError:
            return None
    if lower == "today":
        return today
    if lower == "tomorrow":
        return today + timedelta(days=1)
    relative = _RELATIVE_RE.match(lower)
    if relative:
        weekday = day_number(relative.group(2))
        if weekday is None:
            return None
        return next_occurrence(today, weekday, include_today=relative.group(1) == "this")
    weekday = day_number(lower)
    if weekday is not None:
        return next_occurrence(today, weekday)
    return None


# ---------------------------------------------------------------------------
# Base generators
# ---------------------------------------------------------------------------


def resolve_dates(today: date, params: ResolveDatesParams) -> GeneratorResult:
    resolved: list[date] = []
    unknown: list[str] = []
    for token in params.dates:
        value = resolve_date_token(token, today)
        if value is None:
            unknown.append(token)
        else:
            resolved.append(value)

    error = f"Unrecognized date tokens: {', '.join(unknown)}" if unknown else None
    if not resolved:
        return _fail(error or "No dates given")
    return _ok(resolved, f"Resolved {len(set(resolved))} explicit date(s)", error)


def expand_month(today: date, params: PeriodParams) -> GeneratorResult:
    dates, label = _weekdays(today, params.period)
    return _ok(dates, f"All {len(dates)} weekdays in {label}")


def expand_all_days(today: date, params: PeriodParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    dates = month_days(year, month)
    return _ok(dates, f"All {len(dates)} calendar days in {month_label(year, month)}")


def expand_weeks(today: date, params: SliceParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    total = days_in_month(year, month)
    span = params.count * 7
    if params.position == "first":
        days = month_days(year, month, 1, span)
    else:
        days = month_days(year, month, total - span + 1)
    dates = filters.drop_weekends(days)
    return _ok(dates, f"{params.position.capitalize()} {params.count} week(s) of {month_label(year, month)}: {len(dates)} weekdays")


def expand_working_days(today: date, params: SliceParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = _working_slice(weekdays, params.count, params.position)
    return _ok(dates, f"{params.position.capitalize()} {params.count} working days of {label}")


def expand_day_of_week(today: date, params: DayOfWeekParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    weekday = day_number(params.day)
    dates = [d for d in month_days(year, month) if d.weekday() == weekday]
    return _ok(dates, f"Every {params.day} in {month_label(year, month)}: {len(dates)} dates")


def expand_multiple_days_of_week(today: date, params: MultipleDaysOfWeekParams) -> GeneratorResult:
    weekdays, invalid = filters.weekday_numbers(params.days)
    if not weekdays:
        return _fail(f"No valid day names in: {', '.join(params.days)}")
    year, month = resolve_period(today, params.period)
    dates = filters.keep_weekdays(month_days(year, month), weekdays)
    error = f"Dropped invalid day names: {', '.join(invalid)}" if invalid else None
    return _ok(dates, f"Every {', '.join(params.days)} in {month_label(year, month)}: {len(dates)} dates", error)


def expand_range(today: date, params: RangeParams) -> GeneratorResult:
    dates, label = _weekdays(today, params.period, params.start_day, params.end_day)
    return _ok(dates, f"{label} days {params.start_day}-{params.end_day}: {len(dates)} weekdays")


def expand_alternate(today: date, params: AlternateParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    if params.type == "calendar":
        dates = filters.drop_weekends(filters.alternate(month_days(year, month)))
    else:
        dates = filters.alternate(filters.drop_weekends(month_days(year, month)))
    kind = "working day" if params.type == "working" else "day"
    return _ok(dates, f"Every alternate {kind} in {month_label(year, month)}: {len(dates)} dates")


def expand_half_month(today: date, params: HalfMonthParams) -> GeneratorResult:
    start, end = (1, 15) if params.half == "first" else (16, None)
    dates, label = _weekdays(today, params.period, start, end)
    return _ok(dates, f"{params.half.capitalize()} half of {label}: {len(dates)} weekdays")


def expand_except(today: date, params: ExceptParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.drop_weekdays(weekdays, {day_number(params.exclude_day)})
    return _ok(dates, f"All weekdays in {label} except {params.exclude_day}s: {len(dates)} dates")


def expand_first_weekday_per_week(today: date, params: PeriodParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.slice_per_week(weekdays, 1, "first")
    return _ok(dates, f"First weekday of each week in {label}: {len(dates)} dates")


def expand_last_weekday_per_week(today: date, params: PeriodParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.slice_per_week(weekdays, 1, "last")
    return _ok(dates, f"Last weekday of each week in {label}: {len(dates)} dates")


def expand_every_nth(today: date, params: EveryNthParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    days = month_days(year, month, params.start_day)[:: params.n]
    dates = filters.drop_weekends(days)
    return _ok(
        dates,
        f"Every {params.n} days of {month_label(year, month)} from day {params.start_day}: {len(dates)} weekday dates",
    )


def expand_week_period(today: date, params: WeekPeriodParams) -> GeneratorResult:
    monday = week_start(today) + timedelta(days=7 if params.week == "next_week" else 0)
    dates = [monday + timedelta(days=offset) for offset in range(5)]
    label = "Next" if params.week == "next_week" else "This"
    return _ok(dates, f"{label} week (Mon-Fri): {len(dates)} days")


def expand_rest_of_month(today: date, params: EmptyParams) -> GeneratorResult:
    days = month_days(today.year, today.month, today.day + 1)
    dates = filters.drop_weekends(days)
    return _ok(dates, f"Rest of this month: {len(dates)} remaining weekdays")


def expand_specific_weeks(today: date, params: SpecificWeeksParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.keep_week_blocks(weekdays, params.weeks)
    weeks = ", ".join(str(week) for week in params.weeks)
    return _ok(dates, f"Week(s) {weeks} of {label}: {len(dates)} weekdays")


def expand_weekends(today: date, params: PeriodParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    dates = filters.keep_weekdays(month_days(year, month), {5, 6})
    return _ok(dates, f"All {len(dates)} weekend days in {month_label(year, month)}")


def expand_anchor_range(today: date, params: AnchorRangeParams) -> GeneratorResult:
    """Weekdays positioned relative to the Nth occurrence of a weekday.

    Directions:
    - on_and_after: anchor through month end
    - on_and_before: month start through anchor
    - after / before: same, excluding the anchor itself
    - between: anchor through the end anchor (either order), inclusive
    """
    year, month = resolve_period(today, params.period)
    label = month_label(year, month)
    total = days_in_month(year, month)

    anchor = nth_occurrence(year, month, day_number(params.anchor_day), params.anchor_occurrence)
    if anchor is None:
        return _fail(f"Could not find occurrence {params.anchor_occurrence} of {params.anchor_day} in {label}")

    if params.direction == "between":
        if params.end_day is None or params.end_occurrence is None:
            return _fail('direction "between" requires end_day and end_occurrence')
        end_anchor = nth_occurrence(year, month, day_number(params.end_day), params.end_occurrence)
        if end_anchor is None:
            return _fail(f"Could not find occurrence {params.end_occurrence} of {params.end_day} in {label}")
        start, end = min(anchor, end_anchor), max(anchor, end_anchor)
    elif params.direction == "on_and_after":
        start, end = anchor, total
    elif params.direction == "on_and_before":
        start, end = 1, anchor
    elif params.direction == "after":
        start, end = anchor + 1, total
    else:
        start, end = 1, anchor - 1

    dates = filters.drop_weekends(month_days(year, month, start, end))
    return _ok(dates, f"Anchor range ({params.direction}) in {label}: {len(dates)} weekdays")


# ---------------------------------------------------------------------------
# Composite generators
# ---------------------------------------------------------------------------


def expand_half_except_day(today: date, params: HalfExceptDayParams) -> GeneratorResult:
    start, end = (1, 15) if params.half == "first" else (16, None)
    weekdays, label = _weekdays(today, params.period, start, end)
    dates = filters.drop_weekdays(weekdays, {day_number(params.exclude_day)})
    return _ok(dates, f"{params.half.capitalize()} half of {label} except {params.exclude_day}s: {len(dates)} weekdays")


def expand_range_except_days(today: date, params: RangeExceptDaysParams) -> GeneratorResult:
    excluded, _ = filters.weekday_numbers(params.exclude_days)
    if not excluded:
        return _fail(f"No valid day names in: {', '.join(params.exclude_days)}")
    dates, label = _weekdays(today, params.period, params.start_day, params.end_day)
    dates = filters.drop_weekdays(dates, excluded)
    return _ok(
        dates,
        f"{label} days {params.start_day}-{params.end_day} except {', '.join(params.exclude_days)}: {len(dates)} weekdays",
    )


def expand_range_days_of_week(today: date, params: RangeDaysOfWeekParams) -> GeneratorResult:
    wanted, _ = filters.weekday_numbers(params.days)
    if not wanted:
        return _fail(f"No valid day names in: {', '.join(params.days)}")
    year, month = resolve_period(today, params.period)
    days = month_days(year, month, params.start_day, params.end_day)
    dates = filters.keep_weekdays(days, wanted)
    return _ok(
        dates,
        f"{', '.join(params.days)} in {month_label(year, month)} days {params.start_day}-{params.end_day}: {len(dates)} dates",
    )


def expand_n_working_days_except(today: date, params: NWorkingDaysExceptParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    excluded, _ = filters.weekday_numbers(params.exclude_days)
    dates = filters.drop_weekdays(_working_slice(weekdays, params.count, params.position), excluded)
    return _ok(
        dates,
        f"{params.position.capitalize()} {params.count} working days of {label} except {', '.join(params.exclude_days)}: {len(dates)} dates",
    )


def expand_ordinal_day_of_week(today: date, params: OrdinalDayOfWeekParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    dates: list[date] = []
    missing: list[str] = []
    for entry in params.ordinals:
        day = nth_occurrence(year, month, day_number(entry.day), entry.ordinal)
        if day is None:
            missing.append(f"Could not find ordinal {entry.ordinal} of {entry.day}")
        else:
            dates.append(date(year, month, day))

    error = "; ".join(missing) if missing else None
    if not dates:
        return _fail(error or "No ordinals given")
    return _ok(dates, f"Ordinal day(s) of week in {month_label(year, month)}: {len(set(dates))} dates", error)


def expand_month_except_weeks(today: date, params: MonthExceptWeeksParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.drop_week_blocks(weekdays, params.exclude_weeks)
    weeks = ", ".join(str(week) for week in params.exclude_weeks)
    return _ok(dates, f"All weekdays in {label} except week(s) {weeks}: {len(dates)} dates")


def expand_month_except_range(today: date, params: MonthExceptRangeParams) -> GeneratorResult:
    weekdays, label = _weekdays(today, params.period)
    dates = filters.drop_day_range(weekdays, params.exclude_start, params.exclude_end)
    return _ok(
        dates,
        f"All weekdays in {label} except days {params.exclude_start}-{params.exclude_end}: {len(dates)} dates",
    )


def expand_range_alternate(today: date, params: RangeAlternateParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    days = month_days(year, month, params.start_day, params.end_day)
    if params.type == "calendar":
        dates = filters.drop_weekends(filters.alternate(days))
    else:
        dates = filters.alternate(filters.drop_weekends(days))
    kind = "working day" if params.type == "working" else "day"
    return _ok(
        dates,
        f"Every alternate {kind} in {month_label(year, month)} days {params.start_day}-{params.end_day}: {len(dates)} dates",
    )


def expand_n_days_from_ordinal(today: date, params: NDaysFromOrdinalParams) -> GeneratorResult:
    year, month = resolve_period(today, params.period)
    anchor = nth_occurrence(year, month, day_number(params.day), params.ordinal)
    if anchor is None:
        return _fail(f"Could not find ordinal {params.ordinal} of {params.day}")
    dates = filters.drop_weekends(month_days(year, month, anchor))[: params.count]
    return _ok(
        dates,
        f"{params.count} working days from ordinal {params.ordinal} {params.day} in {month_label(year, month)}: {len(dates)} dates",
    )
