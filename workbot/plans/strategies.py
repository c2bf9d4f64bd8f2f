"""Ordered strategies for turning an action into candidate dates.

Each strategy returns a date list, or None when it does not apply or
fails. The first non-None answer wins. A successful tool call that
yields no dates is an answer (the empty set), not a failure.
"""

from collections.abc import Callable
from datetime import date

from loguru import logger

from workbot.dates import (
    ModifierContext,
    apply_modifiers,
    execute_date_pipeline,
    resolve_expressions,
    synthesize_expressions,
)
from workbot.plans.types import Action

Strategy = Callable[[Action, date, ModifierContext], list[date] | None]


def _from_phrases(phrases: list[str], action: Action, today: date, context: ModifierContext) -> list[date] | None:
    if not phrases:
        return None
    dates, unresolved = resolve_expressions(phrases, today)
    if len(unresolved) == len(phrases):
        return None
    if action.modifiers:
        dates, _ = apply_modifiers(dates, action.modifiers, context)
    return dates


def from_tool_call(action: Action, today: date, context: ModifierContext) -> list[date] | None:
    """Run the action's tool call and modifiers through the pipeline."""
    if action.tool_call is None:
        return None
    result = execute_date_pipeline(action.tool_call, action.modifiers, today, context)
    if not result.success:
        logger.warning(
            "Tool call failed, trying fallbacks",
            tool=action.tool_call.tool,
            error=result.generator_result.error,
        )
        return None
    return result.dates


def from_synthesized_phrases(action: Action, today: date, context: ModifierContext) -> list[date] | None:
    """Rebuild a phrase from a failed tool call and resolve that instead."""
    if action.tool_call is None:
        return None
    phrases = synthesize_expressions(action.tool_call)
    dates = _from_phrases(phrases, action, today, context)
    if dates is not None:
        logger.info("Recovered dates from tool call phrase", tool=action.tool_call.tool, phrases=phrases)
    return dates


def from_date_expressions(action: Action, today: date, context: ModifierContext) -> list[date] | None:
    """Resolve the action's explicit legacy phrases."""
    return _from_phrases(action.date_expressions, action, today, context)


STRATEGIES: list[Strategy] = [from_tool_call, from_synthesized_phrases, from_date_expressions]


def candidate_dates(action: Action, today: date, context: ModifierContext) -> list[date]:
    """Return the first strategy's answer, or an empty list if none applies."""
    for strategy in STRATEGIES:
        dates = strategy(action, today, context)
        if dates is not None:
            return dates
    tool = action.tool_call.tool if action.tool_call else None
    logger.warning("Action resolved to no dates", action_type=action.type, tool=tool)
    return []
