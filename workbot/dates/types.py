"""Core types for the date-expression engine.

Tool calls and modifiers arrive as loosely-typed JSON from the plan
proposer. They are carried as plain name + params pairs here and only
converted to strict per-tool parameter models at dispatch time, so an
unknown name or a bad parameter becomes failure data instead of an
exception.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeneratorName(StrEnum):
    """Closed set of date generators a tool call may name."""

    RESOLVE_DATES = "resolve_dates"
    EXPAND_MONTH = "expand_month"
    EXPAND_ALL_DAYS = "expand_all_days"
    EXPAND_WEEKS = "expand_weeks"
    EXPAND_WORKING_DAYS = "expand_working_days"
    EXPAND_DAY_OF_WEEK = "expand_day_of_week"
    EXPAND_MULTIPLE_DAYS_OF_WEEK = "expand_multiple_days_of_week"
    EXPAND_RANGE = "expand_range"
    EXPAND_ALTERNATE = "expand_alternate"
    EXPAND_HALF_MONTH = "expand_half_month"
    EXPAND_EXCEPT = "expand_except"
    EXPAND_FIRST_WEEKDAY_PER_WEEK = "expand_first_weekday_per_week"
    EXPAND_LAST_WEEKDAY_PER_WEEK = "expand_last_weekday_per_week"
    EXPAND_EVERY_NTH = "expand_every_nth"
    EXPAND_WEEK_PERIOD = "expand_week_period"
    EXPAND_REST_OF_MONTH = "expand_rest_of_month"
    EXPAND_SPECIFIC_WEEKS = "expand_specific_weeks"
    EXPAND_WEEKENDS = "expand_weekends"
    EXPAND_ANCHOR_RANGE = "expand_anchor_range"
    EXPAND_HALF_EXCEPT_DAY = "expand_half_except_day"
    EXPAND_RANGE_EXCEPT_DAYS = "expand_range_except_days"
    EXPAND_RANGE_DAYS_OF_WEEK = "expand_range_days_of_week"
    EXPAND_N_WORKING_DAYS_EXCEPT = "expand_n_working_days_except"
    EXPAND_ORDINAL_DAY_OF_WEEK = "expand_ordinal_day_of_week"
    EXPAND_MONTH_EXCEPT_WEEKS = "expand_month_except_weeks"
    EXPAND_MONTH_EXCEPT_RANGE = "expand_month_except_range"
    EXPAND_RANGE_ALTERNATE = "expand_range_alternate"
    EXPAND_N_DAYS_FROM_ORDINAL = "expand_n_days_from_ordinal"


class ModifierKind(StrEnum):
    """Closed set of post-generation filters.

    exclude_* kinds subtract matching dates, filter_* kinds keep only
    matching dates.
    """

    EXCLUDE_DATES = "exclude_dates"
    EXCLUDE_DAYS_OF_WEEK = "exclude_days_of_week"
    EXCLUDE_RANGE = "exclude_range"
    EXCLUDE_WEEKS = "exclude_weeks"
    EXCLUDE_WORKING_DAYS_COUNT = "exclude_working_days_count"
    EXCLUDE_HOLIDAYS = "exclude_holidays"
    FILTER_DAYS_OF_WEEK = "filter_days_of_week"
    FILTER_RANGE = "filter_range"
    FILTER_WEEKDAY_SLICE = "filter_weekday_slice"


class ToolCall(BaseModel):
    """Generator invocation proposed for an action."""

    model_config = ConfigDict(frozen=True)

    tool: str
    params: dict[str, Any] = Field(default_factory=dict)


class Modifier(BaseModel):
    """One stage of the modifier pipeline."""

    model_config = ConfigDict(frozen=True)

    type: str
    params: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class GeneratorResult:
    """Outcome of a single generator run.

    Attributes:
        success: Whether the generator produced a usable date set
        dates: Strictly ascending, duplicate-free dates
        description: Human-readable summary of what was generated
        error: Failure reason, or a warning on partial success
    """

    success: bool
    dates: list[date] = field(default_factory=list)
    description: str = ""
    error: str | None = None


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a generator followed by its modifiers.

    dates is always a subset of generator_result.dates.
    """

    success: bool
    dates: list[date]
    description: str
    generator_result: GeneratorResult
    modifier_errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ModifierContext:
    """Request-scoped inputs some modifiers need."""

    holidays: frozenset[date] = frozenset()
