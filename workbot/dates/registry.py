"""Generator registry and dispatcher.

Maps every GeneratorName to its parameter model, implementation and
weekend-awareness. Dispatch never raises: an unknown tool, a params
validation failure or a generator-level ValueError all come back as a
failed GeneratorResult.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from loguru import logger
from pydantic import ValidationError

from workbot.dates import generators as g
from workbot.dates.filters import drop_weekends
from workbot.dates.types import GeneratorName, GeneratorResult, ToolCall
from workbot.utils.validation import describe_validation_error


@dataclass(frozen=True)
class GeneratorSpec:
    """Registry entry for one generator.

    Attributes:
        params_model: Strict pydantic model for the tool's params
        fn: Generator implementation
        weekend_aware: Whether Saturday/Sunday dates may be returned
        summary: One-line description for the proposer prompt
        examples: Sample phrasings the tool is meant for
    """

    params_model: type[g.GeneratorParams]
    fn: Callable[..., GeneratorResult]
    summary: str
    examples: tuple[str, ...] = ()
    weekend_aware: bool = False


GENERATORS: dict[GeneratorName, GeneratorSpec] = {
    GeneratorName.RESOLVE_DATES: GeneratorSpec(
        g.ResolveDatesParams,
        g.resolve_dates,
        "Individual explicit dates: ISO dates, today, tomorrow, next/this <weekday>, bare weekday",
        ("2026-03-05", "tomorrow", "next Monday", "this Friday"),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_MONTH: GeneratorSpec(
        g.PeriodParams,
        g.expand_month,
        "All weekdays of the month",
        ("every weekday next month", "this month"),
    ),
    GeneratorName.EXPAND_ALL_DAYS: GeneratorSpec(
        g.PeriodParams,
        g.expand_all_days,
        "Every calendar day of the month, weekends included",
        ("every single day next month including weekends",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_WEEKS: GeneratorSpec(
        g.SliceParams,
        g.expand_weeks,
        "First or last count*7 calendar days of the month, weekdays only",
        ("first 2 weeks of next month", "last week of this month"),
    ),
    GeneratorName.EXPAND_WORKING_DAYS: GeneratorSpec(
        g.SliceParams,
        g.expand_working_days,
        "First or last N working days of the month",
        ("first 10 working days of next month", "last 5 business days"),
    ),
    GeneratorName.EXPAND_DAY_OF_WEEK: GeneratorSpec(
        g.DayOfWeekParams,
        g.expand_day_of_week,
        "Every occurrence of one weekday",
        ("every Monday next month",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_MULTIPLE_DAYS_OF_WEEK: GeneratorSpec(
        g.MultipleDaysOfWeekParams,
        g.expand_multiple_days_of_week,
        "Every occurrence of several weekdays",
        ("every Monday and Wednesday next month",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_RANGE: GeneratorSpec(
        g.RangeParams,
        g.expand_range,
        "Weekdays between two day numbers, inclusive",
        ("5th to 20th of next month",),
    ),
    GeneratorName.EXPAND_ALTERNATE: GeneratorSpec(
        g.AlternateParams,
        g.expand_alternate,
        "calendar: days 1, 3, 5, ... that are weekdays; working: every other weekday starting with the first",
        ("every alternate day next month", "every other working day"),
    ),
    GeneratorName.EXPAND_HALF_MONTH: GeneratorSpec(
        g.HalfMonthParams,
        g.expand_half_month,
        "Weekdays of days 1-15 (first) or 16-end (second)",
        ("first half of next month",),
    ),
    GeneratorName.EXPAND_EXCEPT: GeneratorSpec(
        g.ExceptParams,
        g.expand_except,
        "All weekdays except one weekday",
        ("every weekday next month except Fridays",),
    ),
    GeneratorName.EXPAND_FIRST_WEEKDAY_PER_WEEK: GeneratorSpec(
        g.PeriodParams,
        g.expand_first_weekday_per_week,
        "First weekday of each Mon-Sun week intersecting the month",
        ("first working day of every week next month",),
    ),
    GeneratorName.EXPAND_LAST_WEEKDAY_PER_WEEK: GeneratorSpec(
        g.PeriodParams,
        g.expand_last_weekday_per_week,
        "Last weekday of each Mon-Sun week intersecting the month",
        ("last business day each week",),
    ),
    GeneratorName.EXPAND_EVERY_NTH: GeneratorSpec(
        g.EveryNthParams,
        g.expand_every_nth,
        "Days start_day, start_day+n, ... that are weekdays (start_day defaults to 1)",
        ("every 3rd day next month", "even-numbered dates (n=2, start_day=2)"),
    ),
    GeneratorName.EXPAND_WEEK_PERIOD: GeneratorSpec(
        g.WeekPeriodParams,
        g.expand_week_period,
        "Monday to Friday of this week or next week",
        ("next week", "this week"),
    ),
    GeneratorName.EXPAND_REST_OF_MONTH: GeneratorSpec(
        g.EmptyParams,
        g.expand_rest_of_month,
        "Weekdays from tomorrow to the end of the current month",
        ("rest of this month",),
    ),
    GeneratorName.EXPAND_SPECIFIC_WEEKS: GeneratorSpec(
        g.SpecificWeeksParams,
        g.expand_specific_weeks,
        "Weekdays of numbered 7-day blocks (1 = days 1-7); -1 = last 7 days, -2 = the 7 before that",
        ("second week of next month", "first and last week (weeks [1, -1])"),
    ),
    GeneratorName.EXPAND_WEEKENDS: GeneratorSpec(
        g.PeriodParams,
        g.expand_weekends,
        "Saturdays and Sundays only",
        ("every weekend next month",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_ANCHOR_RANGE: GeneratorSpec(
        g.AnchorRangeParams,
        g.expand_anchor_range,
        "Weekdays relative to the Nth occurrence of a weekday (negative = from the end)",
        ("after the first Monday", "between first Monday and last Friday"),
    ),
    GeneratorName.EXPAND_HALF_EXCEPT_DAY: GeneratorSpec(
        g.HalfExceptDayParams,
        g.expand_half_except_day,
        "Half of the month without one weekday",
        ("first half except Fridays",),
    ),
    GeneratorName.EXPAND_RANGE_EXCEPT_DAYS: GeneratorSpec(
        g.RangeExceptDaysParams,
        g.expand_range_except_days,
        "Day range without some weekdays",
        ("days 1-21 except Mondays",),
    ),
    GeneratorName.EXPAND_RANGE_DAYS_OF_WEEK: GeneratorSpec(
        g.RangeDaysOfWeekParams,
        g.expand_range_days_of_week,
        "Only some weekdays inside a day range",
        ("Mon-Wed in the first 3 weeks",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_N_WORKING_DAYS_EXCEPT: GeneratorSpec(
        g.NWorkingDaysExceptParams,
        g.expand_n_working_days_except,
        "First or last N working days, then drop some weekdays",
        ("first 10 working days except Mondays",),
    ),
    GeneratorName.EXPAND_ORDINAL_DAY_OF_WEEK: GeneratorSpec(
        g.OrdinalDayOfWeekParams,
        g.expand_ordinal_day_of_week,
        "Nth occurrences of weekdays (1 = first, -1 = last)",
        ("first Wednesday and last Thursday",),
        weekend_aware=True,
    ),
    GeneratorName.EXPAND_MONTH_EXCEPT_WEEKS: GeneratorSpec(
        g.MonthExceptWeeksParams,
        g.expand_month_except_weeks,
        "All weekdays minus numbered 7-day blocks (negative = from the end)",
        ("entire month except the second week",),
    ),
    GeneratorName.EXPAND_MONTH_EXCEPT_RANGE: GeneratorSpec(
        g.MonthExceptRangeParams,
        g.expand_month_except_range,
        "All weekdays minus a day range",
        ("all days except the 10th to 15th",),
    ),
    GeneratorName.EXPAND_RANGE_ALTERNATE: GeneratorSpec(
        g.RangeAlternateParams,
        g.expand_range_alternate,
        "Alternation restarted at start_day and limited to the range",
        ("alternate days in the first half",),
    ),
    GeneratorName.EXPAND_N_DAYS_FROM_ORDINAL: GeneratorSpec(
        g.NDaysFromOrdinalParams,
        g.expand_n_days_from_ordinal,
        "count working days starting at the Nth occurrence of a weekday",
        ("5 days starting from the first Wednesday",),
    ),
}


def _finalize(result: GeneratorResult, weekend_aware: bool) -> GeneratorResult:
    if not result.success:
        return result
    dates = sorted(set(result.dates))
    if not weekend_aware:
        dates = drop_weekends(dates)
    return GeneratorResult(success=True, dates=dates, description=result.description, error=result.error)


def execute_date_tool(tool_call: ToolCall, today: date) -> GeneratorResult:
    """Run one generator against the caller's reference date.

    Args:
        tool_call: Tool name and raw params from the plan
        today: Reference date every relative expression resolves against

    Returns:
        GeneratorResult; success=False carries the failure reason in error
    """
    try:
        name = GeneratorName(tool_call.tool)
    except ValueError:
        logger.warning("Unknown date tool requested", tool=tool_call.tool)
        return GeneratorResult(success=False, error=f"Unknown tool: {tool_call.tool}")

    spec = GENERATORS[name]
    try:
        params = spec.params_model.model_validate(tool_call.params)
        result = spec.fn(today, params)
    except ValidationError as exc:
        error = f"{name}: invalid params: {describe_validation_error(exc)}"
        logger.warning("Date tool params rejected", tool=str(name), error=error)
        return GeneratorResult(success=False, error=error)
    except ValueError as exc:
        logger.warning("Date tool failed", tool=str(name), error=str(exc))
        return GeneratorResult(success=False, error=f"{name}: {exc}")

    result = _finalize(result, spec.weekend_aware)
    if result.success:
        logger.debug("Date tool resolved dates", tool=str(name), count=len(result.dates))
    else:
        logger.warning("Date tool returned failure", tool=str(name), error=result.error)
    return result


def execute_date_tools(tool_calls: Sequence[ToolCall], today: date) -> tuple[list[date], list[GeneratorResult]]:
    """Run several tool calls and merge the dates of the successful ones."""
    merged: set[date] = set()
    results: list[GeneratorResult] = []
    for tool_call in tool_calls:
        result = execute_date_tool(tool_call, today)
        results.append(result)
        if result.success:
            merged.update(result.dates)
    return sorted(merged), results
