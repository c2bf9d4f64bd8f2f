"""Tests for proposer-output parsing and the target-user guard."""

import pytest

from workbot.plans import (
    EmptyPlanError,
    InvalidCommandError,
    PlanParseError,
    TargetUserForbiddenError,
    guard_target_user,
    parse_plan,
    plan_from_dict,
    sanitise_command,
)
from workbot.plans.envelope import extract_json, strip_nulls


class TestSanitiseCommand:
    def test_strips_control_characters_and_whitespace(self):
        assert sanitise_command("  mark\x00 next week\x07 as office \n", 1000) == "mark next week as office"

    def test_empty_after_trimming_is_rejected(self):
        with pytest.raises(InvalidCommandError):
            sanitise_command(" \x01\t ", 1000)

    def test_over_long_command_is_rejected(self):
        with pytest.raises(InvalidCommandError, match="exceeds 10 characters"):
            sanitise_command("x" * 11, 10)


class TestExtractJson:
    def test_code_fence(self):
        text = 'Here you go:\n```json\n{"actions": []}\n```'
        assert extract_json(text) == {"actions": []}

    def test_surrounding_prose(self):
        assert extract_json('Sure! {"summary": "ok"} Hope that helps.') == {"summary": "ok"}

    def test_invalid_json_raises(self):
        with pytest.raises(PlanParseError) as exc_info:
            extract_json("I could not do that")
        assert exc_info.value.raw == "I could not do that"

    def test_non_object_raises(self):
        with pytest.raises(PlanParseError):
            extract_json("[1, 2, 3]")


class TestStripNulls:
    def test_nested(self):
        data = {"a": None, "b": [1, None, {"c": None, "d": 2}], "e": {"f": None}}
        assert strip_nulls(data) == {"b": [1, {"d": 2}], "e": {}}


class TestPlanFromDict:
    """Null-bearing and malformed shapes are cleaned before validation."""

    def test_full_action(self):
        plan = plan_from_dict(
            {
                "actions": [
                    {
                        "type": "set",
                        "status": "leave",
                        "toolCall": {"tool": "resolve_dates", "params": {"dates": ["tomorrow"]}},
                        "modifiers": [{"type": "exclude_holidays", "params": None}],
                        "leaveDuration": "half",
                        "halfDayPortion": "second-half",
                        "note": None,
                    }
                ],
                "summary": "Half day tomorrow",
            }
        )
        action = plan.actions[0]
        assert action.tool_call.tool == "resolve_dates"
        assert action.modifiers[0].type == "exclude_holidays"
        assert action.modifiers[0].params == {}
        assert action.note is None
        assert action.is_half_day_leave is True
        assert plan.summary == "Half day tomorrow"

    def test_unknown_action_types_are_dropped(self):
        plan = plan_from_dict({"actions": [{"type": "delete"}, {"type": "clear", "dateExpressions": ["next week"]}]})
        assert len(plan.actions) == 1
        assert plan.actions[0].type == "clear"
        assert plan.actions[0].change_status == "clear"

    def test_malformed_tool_call_is_dropped(self):
        plan = plan_from_dict(
            {"actions": [{"type": "set", "toolCall": "expand_month", "dateExpressions": ["next month", 7]}]}
        )
        action = plan.actions[0]
        assert action.tool_call is None
        assert action.date_expressions == ["next month"]

    def test_malformed_modifiers_are_dropped(self):
        plan = plan_from_dict(
            {
                "actions": [
                    {
                        "type": "set",
                        "toolCall": {"tool": "expand_month", "params": {"period": "next_month"}},
                        "modifiers": [{"params": {}}, "exclude_holidays", {"type": "exclude_holidays"}],
                    }
                ]
            }
        )
        assert [m.type for m in plan.actions[0].modifiers] == ["exclude_holidays"]

    def test_non_string_scalars_are_dropped(self):
        plan = plan_from_dict({"actions": [{"type": "set", "status": 1, "referenceUser": ["Rahul"]}]})
        assert plan.actions[0].status is None
        assert plan.actions[0].change_status == "office"
        assert plan.actions[0].reference_user is None

    def test_missing_actions_raise_empty_plan(self):
        with pytest.raises(EmptyPlanError):
            plan_from_dict({"summary": "nothing"})

    def test_only_unusable_actions_raise_empty_plan(self):
        with pytest.raises(EmptyPlanError):
            plan_from_dict({"actions": [None, {"type": "upsert"}]})

    def test_parse_plan_end_to_end(self):
        text = '```json\n{"actions": [{"type": "set", "status": "office", "toolCall": {"tool": "expand_month", "params": {"period": "next_month"}}}], "targetUser": null}\n```'
        plan = parse_plan(text)
        assert plan.target_user is None
        assert plan.actions[0].tool_call.params == {"period": "next_month"}


class TestGuardTargetUser:
    """Plans may only edit the caller's own schedule."""

    def _plan(self, target):
        return plan_from_dict({"actions": [{"type": "clear"}], "targetUser": target})

    @pytest.mark.parametrize("target", ["Alice Kumar", "alice", "KUMAR", "  Alice  "])
    def test_self_reference_is_allowed_and_stripped(self, target):
        plan = guard_target_user(self._plan(target), "Alice Kumar")
        assert plan.target_user is None

    def test_other_user_is_forbidden(self):
        with pytest.raises(TargetUserForbiddenError) as exc_info:
            guard_target_user(self._plan("Bala"), "Alice Kumar")
        assert exc_info.value.message == "You can only update your own schedule. You cannot modify Bala's calendar."

    def test_partial_name_fragment_is_forbidden(self):
        with pytest.raises(TargetUserForbiddenError):
            guard_target_user(self._plan("Ali"), "Alice Kumar")

    def test_no_target_passes(self):
        plan = guard_target_user(self._plan(None), "Alice Kumar")
        assert plan.target_user is None
