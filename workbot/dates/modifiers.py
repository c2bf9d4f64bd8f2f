"""Modifier pipeline stages.

A modifier narrows a date set after generation: exclude_* kinds subtract
dates, filter_* kinds keep only matching dates. Output is always a
subset of input. A stage that cannot run (unknown kind, bad params)
leaves the set unchanged and reports an error string instead of raising.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from workbot.dates import filters
from workbot.dates.types import Modifier, ModifierContext, ModifierKind
from workbot.utils.validation import describe_validation_error


class ModifierParams(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class DatesParams(ModifierParams):
    dates: list[date]


class OptionalDatesParams(ModifierParams):
    dates: list[date] | None = None


class DaysParams(ModifierParams):
    days: list[StrictStr]


class DayRangeParams(ModifierParams):
    start_day: StrictInt
    end_day: StrictInt


class WeeksParams(ModifierParams):
    weeks: list[StrictInt]


class CountParams(ModifierParams):
    count: StrictInt = Field(ge=0)
    position: Literal["first", "last"]


def _exclude_dates(dates: list[date], params: DatesParams, context: ModifierContext) -> list[date]:
    return filters.drop_dates(dates, params.dates)


def _exclude_days_of_week(dates: list[date], params: DaysParams, context: ModifierContext) -> list[date]:
    weekdays, _ = filters.weekday_numbers(params.days)
    return filters.drop_weekdays(dates, weekdays)


def _exclude_range(dates: list[date], params: DayRangeParams, context: ModifierContext) -> list[date]:
    return filters.drop_day_range(dates, params.start_day, params.end_day)


def _exclude_weeks(dates: list[date], params: WeeksParams, context: ModifierContext) -> list[date]:
    return filters.drop_week_blocks(dates, params.weeks)


def _exclude_working_days_count(dates: list[date], params: CountParams, context: ModifierContext) -> list[date]:
    return filters.drop_working_days_count(dates, params.count, params.position)


def _exclude_holidays(dates: list[date], params: OptionalDatesParams, context: ModifierContext) -> list[date]:
    holidays = params.dates if params.dates is not None else context.holidays
    return filters.drop_dates(dates, holidays)


def _filter_days_of_week(dates: list[date], params: DaysParams, context: ModifierContext) -> list[date]:
    weekdays, _ = filters.weekday_numbers(params.days)
    if not weekdays:
        raise ValueError("no valid day names provided")
    return filters.keep_weekdays(dates, weekdays)


def _filter_range(dates: list[date], params: DayRangeParams, context: ModifierContext) -> list[date]:
    return filters.keep_day_range(dates, params.start_day, params.end_day)


def _filter_weekday_slice(dates: list[date], params: CountParams, context: ModifierContext) -> list[date]:
    return filters.slice_per_week(dates, params.count, params.position)


@dataclass(frozen=True)
class ModifierSpec:
    params_model: type[ModifierParams]
    fn: Callable[..., list[date]]
    summary: str


MODIFIERS: dict[ModifierKind, ModifierSpec] = {
    ModifierKind.EXCLUDE_DATES: ModifierSpec(DatesParams, _exclude_dates, "Remove specific ISO dates"),
    ModifierKind.EXCLUDE_DAYS_OF_WEEK: ModifierSpec(DaysParams, _exclude_days_of_week, "Remove every occurrence of the given weekdays"),
    ModifierKind.EXCLUDE_RANGE: ModifierSpec(DayRangeParams, _exclude_range, "Remove day numbers start_day..end_day"),
    ModifierKind.EXCLUDE_WEEKS: ModifierSpec(WeeksParams, _exclude_weeks, "Remove numbered 7-day blocks (1 = days 1-7, -1 = last 7 days)"),
    ModifierKind.EXCLUDE_WORKING_DAYS_COUNT: ModifierSpec(CountParams, _exclude_working_days_count, "Remove the first or last N working days of the set"),
    ModifierKind.EXCLUDE_HOLIDAYS: ModifierSpec(OptionalDatesParams, _exclude_holidays, "Remove holidays; leave params empty to use the company holiday list"),
    ModifierKind.FILTER_DAYS_OF_WEEK: ModifierSpec(DaysParams, _filter_days_of_week, "Keep only the given weekdays"),
    ModifierKind.FILTER_RANGE: ModifierSpec(DayRangeParams, _filter_range, "Keep only day numbers start_day..end_day"),
    ModifierKind.FILTER_WEEKDAY_SLICE: ModifierSpec(CountParams, _filter_weekday_slice, "Keep the first or last N dates of every Mon-Sun week"),
}


def apply_modifier(
    dates: list[date],
    modifier: Modifier,
    context: ModifierContext | None = None,
) -> tuple[list[date], str | None]:
    """Apply one modifier to a date set.

    Args:
        dates: Current date set
        modifier: Modifier kind and raw params
        context: Request-scoped inputs (holidays for exclude_holidays)

    Returns:
        (dates, error). On error the input dates are returned unchanged.
    """
    context = context or ModifierContext()
    try:
        kind = ModifierKind(modifier.type)
    except ValueError:
        return dates, f"Unknown modifier type: {modifier.type}"

    spec = MODIFIERS[kind]
    try:
        params = spec.params_model.model_validate(modifier.params)
    except ValidationError as exc:
        return dates, f"{kind}: {describe_validation_error(exc)}"

    try:
        narrowed = spec.fn(dates, params, context)
    except ValueError as exc:
        return dates, f"{kind}: {exc}"

    # Never widen the set, whatever a stage returns
    allowed = set(dates)
    return [d for d in narrowed if d in allowed], None


def apply_modifiers(
    dates: list[date],
    modifiers: Sequence[Modifier],
    context: ModifierContext | None = None,
) -> tuple[list[date], list[str]]:
    """Apply modifiers strictly in order.

    A failing stage is recorded and skipped; later stages still run on
    the unchanged set.

    Returns:
        (sorted unique dates, errors)
    """
    current = list(dates)
    errors: list[str] = []
    for modifier in modifiers:
        current, error = apply_modifier(current, modifier, context)
        if error:
            logger.warning("Modifier skipped", modifier=modifier.type, error=error)
            errors.append(error)
    return sorted(set(current)), errors
