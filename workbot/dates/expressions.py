"""Natural-language date phrases.

Two directions:
- resolve_expressions: the phrase vocabulary older plans carry in
  `dateExpressions` ("first 2 weeks of next month", "every monday next
  month", ...). Each recognised phrase is translated to a tool call and
  run through the registry, so phrases and tools cannot drift apart.
  Unrecognised phrases resolve to nothing; there is no catch-all.
- synthesize_expressions: the reverse, used when a tool call fails
  validation. It reads the params leniently and rebuilds the phrase a
  user would have typed, giving the phrase resolver a second attempt.
"""

import re
from collections.abc import Callable
from datetime import date
from typing import Any

from loguru import logger

from workbot.dates.generators import resolve_date_token
from workbot.dates.registry import execute_date_tool
from workbot.dates.types import GeneratorName, ToolCall
from workbot.utils.calendar import MONTH_NAMES, WEEKDAY_NAMES, days_in_month, month_days, resolve_period

_DAY = "(?:" + "|".join(WEEKDAY_NAMES) + ")"
_MONTH = "(" + "|".join(MONTH_NAMES) + ")"
_PERIOD = r"(next month|this month)"
_OF = r"(?:of\s+)?"
_DAY_LIST = rf"((?:{_DAY}s?[\s,]+(?:and\s+)?)+)"

_NAMED_MONTH_RE = re.compile(rf"^{_DAY_LIST}{_OF}{_MONTH}(?:\s+(\d{{4}}))?$")

Handler = Callable[[re.Match[str], date], ToolCall]


def _period(text: str) -> str:
    return "next_month" if text.startswith("next") else "this_month"


def _days(text: str) -> list[str]:
    return re.findall("|".join(WEEKDAY_NAMES), text)


def _call(tool: GeneratorName, **params: Any) -> ToolCall:
    return ToolCall(tool=tool.value, params=params)


def _last_calendar_days(match: re.Match[str], today: date) -> ToolCall:
    period = _period(match.group(2))
    year, month = resolve_period(today, period)
    total = days_in_month(year, month)
    return _call(GeneratorName.EXPAND_RANGE, period=period, start_day=total - int(match.group(1)) + 1, end_day=total)


_RULES: list[tuple[re.Pattern[str], Handler]] = [
    (
        re.compile(rf"^every\s+day\s+{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_MONTH, period=_period(m.group(1))),
    ),
    (
        re.compile(r"^every\s+day\s+(next|this)\s+week$"),
        lambda m, _: _call(GeneratorName.EXPAND_WEEK_PERIOD, week=f"{m.group(1)}_week"),
    ),
    (
        re.compile(rf"^every\s+day\s+{_PERIOD}\s+except\s+({_DAY})s?$"),
        lambda m, _: _call(GeneratorName.EXPAND_EXCEPT, period=_period(m.group(1)), exclude_day=m.group(2)),
    ),
    (
        re.compile(rf"^every\s+day\s+except\s+({_DAY})s?\s+{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_EXCEPT, period=_period(m.group(2)), exclude_day=m.group(1)),
    ),
    (
        re.compile(rf"^first\s+(\d+)\s+weeks?\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(
            GeneratorName.EXPAND_WEEKS, period=_period(m.group(2)), count=int(m.group(1)), position="first"
        ),
    ),
    (
        re.compile(rf"^last\s+week\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_WEEKS, period=_period(m.group(1)), count=1, position="last"),
    ),
    (
        re.compile(rf"^last\s+(\d+)\s+weeks?\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(
            GeneratorName.EXPAND_WEEKS, period=_period(m.group(2)), count=int(m.group(1)), position="last"
        ),
    ),
    (
        re.compile(rf"^(first|last)\s+(\d+)\s+(?:working|business|week)\s*days?\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(
            GeneratorName.EXPAND_WORKING_DAYS, period=_period(m.group(3)), count=int(m.group(2)), position=m.group(1)
        ),
    ),
    (
        re.compile(rf"^every\s+(?:alternate|other|2nd|second)\s+day\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_ALTERNATE, period=_period(m.group(1)), type="calendar"),
    ),
    (
        re.compile(rf"^every\s+(?:alternate|other|2nd|second)\s+(?:working|week)\s*day\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_ALTERNATE, period=_period(m.group(1)), type="working"),
    ),
    (
        re.compile(rf"^first\s+(?:weekday|working day)\s+{_OF}(?:each|every)\s+week\s+(?:of\s+|in\s+)?{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_FIRST_WEEKDAY_PER_WEEK, period=_period(m.group(1))),
    ),
    (
        re.compile(rf"^last\s+(?:weekday|working day)\s+{_OF}(?:each|every)\s+week\s+(?:of\s+|in\s+)?{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_LAST_WEEKDAY_PER_WEEK, period=_period(m.group(1))),
    ),
    (
        re.compile(rf"^first\s+half\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_HALF_MONTH, period=_period(m.group(1)), half="first"),
    ),
    (
        re.compile(rf"^(?:second|last|latter)\s+half\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_HALF_MONTH, period=_period(m.group(1)), half="second"),
    ),
    (
        re.compile(
            rf"^(?:day\s+)?(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:to|through|-)\s+(?:day\s+)?(\d{{1,2}})(?:st|nd|rd|th)?\s+{_OF}{_PERIOD}$"
        ),
        lambda m, _: _call(
            GeneratorName.EXPAND_RANGE, period=_period(m.group(3)), start_day=int(m.group(1)), end_day=int(m.group(2))
        ),
    ),
    (
        re.compile(rf"^last\s+(\d+)\s+(?:calendar\s+)?days?\s+{_OF}{_PERIOD}$"),
        _last_calendar_days,
    ),
    (
        re.compile(rf"^first\s+(\d+)\s+(?:calendar\s+)?days?\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_RANGE, period=_period(m.group(2)), start_day=1, end_day=int(m.group(1))),
    ),
    (
        re.compile(rf"^every\s+({_DAY})\s+{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_DAY_OF_WEEK, period=_period(m.group(2)), day=m.group(1)),
    ),
    (
        re.compile(rf"^{_DAY_LIST}{_OF}{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_MULTIPLE_DAYS_OF_WEEK, period=_period(m.group(2)), days=_days(m.group(1))),
    ),
    (
        re.compile(r"^(next|this)\s+week$"),
        lambda m, _: _call(GeneratorName.EXPAND_WEEK_PERIOD, week=f"{m.group(1)}_week"),
    ),
    (
        re.compile(r"^rest\s+of\s+(?:this|the)\s+month$"),
        lambda m, _: _call(GeneratorName.EXPAND_REST_OF_MONTH),
    ),
    (
        re.compile(rf"^{_PERIOD}$"),
        lambda m, _: _call(GeneratorName.EXPAND_MONTH, period=_period(m.group(1))),
    ),
]


def _normalize(expression: str) -> str:
    return " ".join(expression.lower().split())


def _named_month(match: re.Match[str], today: date) -> list[date] | None:
    month = MONTH_NAMES.index(match.group(2)) + 1
    year = int(match.group(3)) if match.group(3) else today.year
    if not date.min.year <= year <= date.max.year:
        logger.warning("Year out of range in phrase", year=year)
        return None
    wanted = {WEEKDAY_NAMES.index(name) for name in _days(match.group(1))}
    return [d for d in month_days(year, month) if d.weekday() in wanted]


def parse_expression(expression: str, today: date) -> ToolCall | None:
    """Translate a phrase into the equivalent tool call, or None."""
    text = _normalize(expression)
    for pattern, handler in _RULES:
        match = pattern.match(text)
        if match:
            return handler(match, today)
    return None


def resolve_expression(expression: str, today: date) -> list[date] | None:
    """Resolve one phrase to dates.

    Returns:
        The dates, or None when the phrase is not part of the vocabulary
    """
    text = _normalize(expression)
    single = resolve_date_token(text, today)
    if single is not None:
        return [single]

    named = _NAMED_MONTH_RE.match(text)
    if named:
        return _named_month(named, today)

    tool_call = parse_expression(text, today)
    if tool_call is None:
        return None
    result = execute_date_tool(tool_call, today)
    return result.dates if result.success else None


def resolve_expressions(expressions: list[str], today: date) -> tuple[list[date], list[str]]:
    """Resolve a list of phrases.

    Returns:
        (sorted unique dates, phrases that could not be resolved)
    """
    dates: set[date] = set()
    unresolved: list[str] = []
    for expression in expressions:
        resolved = resolve_expression(expression, today)
        if resolved is None:
            logger.warning("Unresolvable date expression", expression=expression)
            unresolved.append(expression)
        else:
            dates.update(resolved)
    return sorted(dates), unresolved


# ---------------------------------------------------------------------------
# Tool call -> phrase
# ---------------------------------------------------------------------------


def _period_phrase(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace(" ", "_")
    if key == "next_month":
        return "next month"
    if key == "this_month":
        return "this month"
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_names(value: Any) -> list[str]:
    if isinstance(value, str):
        value = re.split(r"[\s,]+", value)
    if not isinstance(value, list):
        return []
    return [str(item).strip().lower() for item in value if str(item).strip()]


def synthesize_expressions(tool_call: ToolCall) -> list[str]:
    """Rebuild natural-language phrases from a tool call's name and params.

    Params are read leniently (numeric strings, comma-separated day
    lists) since this only runs after strict validation has failed.

    Returns:
        Phrases for resolve_expressions; empty when nothing sensible fits
    """
    params = tool_call.params
    tool = tool_call.tool.strip().lower()
    period = _period_phrase(params.get("period"))
    count = _as_int(params.get("count"))
    position = str(params.get("position", "first")).strip().lower()
    if position not in ("first", "last"):
        position = "first"

    if tool == GeneratorName.RESOLVE_DATES:
        tokens = params.get("dates")
        if isinstance(tokens, str):
            return [tokens]
        return [str(token) for token in tokens] if isinstance(tokens, list) else []
    if tool == GeneratorName.EXPAND_WEEK_PERIOD:
        week = str(params.get("week", "")).strip().lower()
        if week.startswith("next"):
            return ["next week"]
        if week.startswith("this"):
            return ["this week"]
        return []
    if tool == GeneratorName.EXPAND_REST_OF_MONTH:
        return ["rest of the month"]
    if period is None:
        return []

    if tool in (GeneratorName.EXPAND_MONTH, GeneratorName.EXPAND_ALL_DAYS):
        return [period]
    if tool == GeneratorName.EXPAND_WEEKS and count:
        return [f"{position} {count} weeks of {period}"]
    if tool == GeneratorName.EXPAND_WORKING_DAYS and count:
        return [f"{position} {count} working days of {period}"]
    if tool == GeneratorName.EXPAND_DAY_OF_WEEK:
        days = _as_names(params.get("day"))
        return [f"every {days[0]} {period}"] if days else []
    if tool == GeneratorName.EXPAND_MULTIPLE_DAYS_OF_WEEK:
        days = _as_names(params.get("days"))
        return [f"{' and '.join(days)} of {period}"] if days else []
    if tool == GeneratorName.EXPAND_RANGE:
        start, end = _as_int(params.get("start_day")), _as_int(params.get("end_day"))
        return [f"{start} to {end} of {period}"] if start and end else []
    if tool == GeneratorName.EXPAND_ALTERNATE:
        kind = "working day" if str(params.get("type", "")).strip().lower() == "working" else "day"
        return [f"every alternate {kind} {period}"]
    if tool == GeneratorName.EXPAND_HALF_MONTH:
        half = "second" if str(params.get("half", "")).strip().lower() == "second" else "first"
        return [f"{half} half of {period}"]
    if tool == GeneratorName.EXPAND_EXCEPT:
        days = _as_names(params.get("exclude_day"))
        return [f"every day {period} except {days[0]}"] if days else []
    if tool == GeneratorName.EXPAND_FIRST_WEEKDAY_PER_WEEK:
        return [f"first weekday of each week {period}"]
    if tool == GeneratorName.EXPAND_LAST_WEEKDAY_PER_WEEK:
        return [f"last weekday of each week {period}"]
    return []
