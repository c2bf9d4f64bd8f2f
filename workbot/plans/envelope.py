"""Turn untrusted proposer output into a Plan.

The proposer is a language model; its only contract is "returns text
containing JSON shaped like a plan". This module extracts that JSON,
drops nulls and malformed shapes, and hands the result to the strict
Plan model. It also owns the command-side sanitising and the
target-user guard that runs before any resolution.
"""

import json
import re
from typing import Any

from loguru import logger
from pydantic import ValidationError

from workbot.plans.errors import EmptyPlanError, InvalidCommandError, PlanParseError, TargetUserForbiddenError
from workbot.plans.types import Plan

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def sanitise_command(raw: str, max_length: int) -> str:
    """Strip control characters and surrounding whitespace from a command.

    Args:
        raw: Command as typed by the user
        max_length: Maximum accepted length after sanitising

    Returns:
        The cleaned command

    Raises:
        InvalidCommandError: If the command is empty or longer than max_length
    """
    command = _CONTROL_CHARS.sub("", raw).strip()
    if not command:
        raise InvalidCommandError("Command must not be empty after trimming.")
    if len(command) > max_length:
        raise InvalidCommandError(f"Command exceeds {max_length} characters.")
    return command


def extract_json(text: str) -> dict[str, Any]:
    """Pull the JSON object out of a proposer response.

    Handles markdown code fences and leading/trailing prose by taking the
    outermost brace pair.

    Raises:
        PlanParseError: If no JSON object can be decoded
    """
    candidate = text
    fenced = _CODE_FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1)

    start, end = candidate.find("{"), candidate.rfind("}")
    if start != -1 and end != -1:
        candidate = candidate[start : end + 1]

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Proposer response is not valid JSON: {e}")
        raise PlanParseError(text) from e

    if not isinstance(data, dict):
        raise PlanParseError(text)
    return data


def strip_nulls(value: Any) -> Any:
    """Recursively drop None values from dicts and None items from lists."""
    if isinstance(value, dict):
        return {key: strip_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [strip_nulls(item) for item in value if item is not None]
    return value


def _clean_call(raw: Any, name_key: str) -> dict[str, Any] | None:
    if not isinstance(raw, dict) or not isinstance(raw.get(name_key), str):
        return None
    params = raw.get("params")
    return {name_key: raw[name_key], "params": params if isinstance(params, dict) else {}}


def _clean_action(raw: dict[str, Any]) -> dict[str, Any]:
    action = dict(raw)

    if "toolCall" in action:
        tool_call = _clean_call(action["toolCall"], "tool")
        if tool_call is None:
            logger.warning("Dropping malformed toolCall", tool_call=repr(action["toolCall"])[:200])
            del action["toolCall"]
        else:
            action["toolCall"] = tool_call

    if "modifiers" in action:
        raw_modifiers = action["modifiers"] if isinstance(action["modifiers"], list) else []
        modifiers = [m for m in (_clean_call(item, "type") for item in raw_modifiers) if m is not None]
        if len(modifiers) != len(raw_modifiers) or not isinstance(action["modifiers"], list):
            logger.warning("Dropping malformed modifiers", kept=len(modifiers))
        action["modifiers"] = modifiers

    if "dateExpressions" in action:
        expressions = action["dateExpressions"]
        action["dateExpressions"] = (
            [item for item in expressions if isinstance(item, str)] if isinstance(expressions, list) else []
        )

    for key in ("status", "note", "leaveDuration", "halfDayPortion", "workingPortion", "filterByCurrentStatus",
                "referenceUser", "referenceCondition"):
        if key in action and not isinstance(action[key], str):
            del action[key]

    return action


def plan_from_dict(data: dict[str, Any]) -> Plan:
    """Validate a null-stripped plan dict into a Plan.

    Raises:
        EmptyPlanError: If no usable action remains
        PlanParseError: If the plan fails validation
    """
    data = strip_nulls(data)
    raw_actions = data.get("actions")
    if not isinstance(raw_actions, list):
        raise EmptyPlanError()

    actions = []
    for raw in raw_actions:
        if not isinstance(raw, dict) or raw.get("type") not in ("set", "clear"):
            logger.warning("Dropping action with unknown type", action=repr(raw)[:200])
            continue
        actions.append(_clean_action(raw))
    if not actions:
        raise EmptyPlanError()

    summary = data.get("summary")
    target_user = data.get("targetUser")
    try:
        return Plan.model_validate(
            {
                "actions": actions,
                "summary": summary if isinstance(summary, str) else "",
                "targetUser": target_user if isinstance(target_user, str) else None,
            }
        )
    except ValidationError as e:
        logger.warning(f"Plan failed validation: {e.error_count()} error(s)")
        raise PlanParseError(json.dumps(data)[:500]) from e


def parse_plan(text: str) -> Plan:
    """Extract, clean and validate a plan from raw proposer text."""
    return plan_from_dict(extract_json(text))


def guard_target_user(plan: Plan, caller_name: str) -> Plan:
    """Reject plans that edit someone else's schedule.

    A targetUser equal to the caller's full name, or to any single part of
    it, is a self-reference. Comparison is case-insensitive.

    Returns:
        The plan with target_user removed

    Raises:
        TargetUserForbiddenError: If the plan targets another user
    """
    target = (plan.target_user or "").strip()
    if target:
        lowered = target.lower()
        own_name = caller_name.strip().lower()
        if lowered != own_name and lowered not in own_name.split():
            logger.warning("Plan targets another user", target_user=target)
            raise TargetUserForbiddenError(target)
    return plan.model_copy(update={"target_user": None})
