"""Tests for plan resolution against a seeded SQLite store."""

from datetime import date

import pytest

from workbot.plans import SqlScheduleStore, plan_from_dict, resolve_plan
from workbot.plans.authorization import edit_window
from workbot.plans.types import InvalidReason

TODAY = date(2026, 2, 25)
NEXT_WEEK = {"tool": "expand_week_period", "params": {"week": "next_week"}}


def march(*days: int) -> list[date]:
    return [date(2026, 3, day) for day in days]


def actions(*raw: dict):
    return plan_from_dict({"actions": list(raw)}).actions


def resolve(db_session, caller, *raw: dict, today: date = TODAY):
    return resolve_plan(actions(*raw), caller, today, SqlScheduleStore(db_session), 90)


class CountingStore:
    """Wraps a store and counts lookups."""

    def __init__(self, inner):
        self.inner = inner
        self.calls: dict[str, int] = {}

    def _count(self, name):
        self.calls[name] = self.calls.get(name, 0) + 1

    def holidays(self):
        self._count("holidays")
        return self.inner.holidays()

    def entry_statuses(self, user_id, dates):
        self._count("entry_statuses")
        return self.inner.entry_statuses(user_id, dates)

    def find_user(self, name):
        self._count("find_user")
        return self.inner.find_user(name)

    def office_dates(self, user_id, dates):
        self._count("office_dates")
        return self.inner.office_dates(user_id, dates)


class TestEditWindow:
    """Role-based edit window bounds."""

    def test_member_window(self, member):
        window = edit_window(member, date(2026, 2, 20), 90)
        assert window.start == date(2026, 2, 1)
        assert window.end == date(2026, 5, 21)
        assert window.is_before(date(2026, 1, 31))
        assert window.is_after(date(2026, 5, 22))
        assert window.contains(date(2026, 5, 21))

    def test_admin_is_unrestricted(self, admin):
        window = edit_window(admin, date(2026, 2, 20), 90)
        assert window.contains(date(2020, 1, 1))
        assert window.contains(date(2030, 1, 1))


class TestValidation:
    """Per-date classification keeps invalid dates with a reason."""

    def test_member_window_edges(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "office", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-01-30", "2026-05-21", "2026-05-22"]}}},
            today=date(2026, 2, 20),
        )
        reasons = {change.date: change.invalid_reason for change in result.changes}
        assert reasons == {
            date(2026, 1, 30): InvalidReason.BEFORE_WINDOW,
            date(2026, 5, 21): None,
            date(2026, 5, 22): InvalidReason.AFTER_WINDOW,
        }
        assert result.valid_count == 1
        assert result.invalid_count == 2

    def test_window_takes_precedence_over_weekend(self, db_session, member):
        """Test weekend dates outside the window report the window reason."""
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "office", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-01-31", "2026-05-23"]}}},
            today=date(2026, 2, 20),
        )
        before, after = result.changes
        assert (before.date, before.invalid_reason) == (date(2026, 1, 31), InvalidReason.BEFORE_WINDOW)
        assert before.validation_message == "Before allowed editing window"
        assert (after.date, after.invalid_reason) == (date(2026, 5, 23), InvalidReason.AFTER_WINDOW)
        assert after.validation_message == "Outside allowed editing window"

    def test_admin_has_no_window(self, db_session, admin):
        result = resolve(
            db_session,
            admin,
            {"type": "set", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-01-30", "2026-12-01"]}}},
        )
        assert all(change.valid for change in result.changes)

    def test_weekend_and_holiday(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "office", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-02-28", "2026-03-10"]}}},
        )
        weekend, holiday = result.changes
        assert weekend.invalid_reason == InvalidReason.WEEKEND
        assert weekend.validation_message == "Weekend date - skipped"
        assert holiday.invalid_reason == InvalidReason.HOLIDAY
        assert holiday.day == "Tuesday"

    def test_invalid_status_marks_every_date(self, db_session, member):
        result = resolve(db_session, member, {"type": "set", "status": "remote", "toolCall": NEXT_WEEK})
        assert len(result.changes) == 5
        assert all(change.invalid_reason == InvalidReason.INVALID_STATUS for change in result.changes)
        assert result.changes[0].validation_message == "Invalid status: remote"

    def test_invalid_status_overrides_calendar_reason(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "remote", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-02-28"]}}},
        )
        assert result.changes[0].invalid_reason == InvalidReason.INVALID_STATUS

    def test_set_without_status_means_office(self, db_session, member):
        result = resolve(db_session, member, {"type": "set", "toolCall": NEXT_WEEK})
        assert {change.status for change in result.changes} == {"office"}
        assert result.valid_count == 5


class TestStatusFilter:
    """filterByCurrentStatus narrows dates by the caller's existing entries."""

    @pytest.fixture
    def schedule(self, team, add_entry):
        add_entry(team["alice"], date(2026, 3, 2), "office")
        add_entry(team["alice"], date(2026, 3, 4), "leave")

    def test_wfh_means_no_entry(self, db_session, member, schedule):
        result = resolve(
            db_session, member, {"type": "set", "status": "office", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "wfh"}
        )
        assert [change.date for change in result.changes] == march(3, 5, 6)

    def test_office_filter(self, db_session, member, schedule):
        result = resolve(db_session, member, {"type": "clear", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "office"})
        assert [change.date for change in result.changes] == march(2)
        assert result.changes[0].status == "clear"

    def test_filter_is_case_insensitive(self, db_session, member, schedule):
        result = resolve(
            db_session, member, {"type": "set", "status": "office", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "Leave"}
        )
        assert [change.date for change in result.changes] == march(4)

    def test_unknown_filter_marks_dates_invalid(self, db_session, member, schedule):
        result = resolve(
            db_session, member, {"type": "set", "status": "office", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "remote"}
        )
        assert len(result.changes) == 5
        assert all(change.invalid_reason == InvalidReason.INVALID_FILTER for change in result.changes)

    def test_other_users_entries_are_ignored(self, db_session, member, team, add_entry):
        add_entry(team["rahul"], date(2026, 3, 3), "office")
        result = resolve(db_session, member, {"type": "clear", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "office"})
        assert result.changes == []


class TestReferenceUser:
    """referenceUser / referenceCondition filter by another user's office days."""

    @pytest.fixture
    def rahul_schedule(self, team, add_entry):
        add_entry(team["rahul"], date(2026, 3, 3), "office")
        add_entry(team["rahul"], date(2026, 3, 5), "office")
        add_entry(team["rahul"], date(2026, 3, 6), "leave")
        add_entry(team["rahula"], date(2026, 3, 2), "office")

    def _reference(self, name, condition):
        return {
            "type": "set",
            "status": "office",
            "toolCall": NEXT_WEEK,
            "referenceUser": name,
            "referenceCondition": condition,
        }

    def test_absent(self, db_session, member, rahul_schedule):
        result = resolve(db_session, member, self._reference("Rahul", "absent"))
        assert [change.date for change in result.changes] == march(2, 4, 6)

    def test_present(self, db_session, member, rahul_schedule):
        result = resolve(db_session, member, self._reference("rahul", "present"))
        assert [change.date for change in result.changes] == march(3, 5)

    def test_exact_name_match(self, db_session, member, rahul_schedule):
        result = resolve(db_session, member, self._reference("Rahula Iyer", "present"))
        assert [change.date for change in result.changes] == march(2)

    def test_unknown_user_is_absent_everywhere(self, db_session, member, rahul_schedule):
        absent = resolve(db_session, member, self._reference("Zed", "absent"))
        present = resolve(db_session, member, self._reference("Zed", "present"))
        assert len(absent.changes) == 5
        assert present.changes == []

    def test_inactive_user_is_not_found(self, db_session, member, team, add_entry):
        add_entry(team["gone"], date(2026, 3, 2), "office")
        result = resolve(db_session, member, self._reference("Gone Person", "absent"))
        assert len(result.changes) == 5


class TestHalfDayFields:
    def test_defaults_for_half_day_leave(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "leave", "leaveDuration": "half", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["tomorrow"]}}},
        )
        change = result.changes[0]
        assert change.leave_duration == "half"
        assert change.half_day_portion == "first-half"
        assert change.working_portion == "wfh"

    def test_explicit_portions_are_kept(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {
                "type": "set",
                "status": "leave",
                "leaveDuration": "half",
                "halfDayPortion": "second-half",
                "workingPortion": "office",
                "toolCall": {"tool": "resolve_dates", "params": {"dates": ["tomorrow"]}},
            },
        )
        change = result.changes[0]
        assert (change.half_day_portion, change.working_portion) == ("second-half", "office")

    def test_not_carried_for_office(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "office", "leaveDuration": "half", "halfDayPortion": "first-half", "toolCall": NEXT_WEEK},
        )
        assert all(change.leave_duration is None and change.half_day_portion is None for change in result.changes)


class TestFallbacks:
    """Ordered strategies when the tool call fails."""

    def test_synthesized_phrase_recovers_bad_params(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "toolCall": {"tool": "expand_weeks", "params": {"period": "next_month", "count": "2", "position": "first"}}},
        )
        assert [change.date for change in result.changes] == march(2, 3, 4, 5, 6, 9, 10, 11, 12, 13)

    def test_modifiers_are_reapplied_to_fallback_dates(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {
                "type": "set",
                "toolCall": {"tool": "expand_weeks", "params": {"period": "next_month", "count": "2", "position": "first"}},
                "modifiers": [{"type": "exclude_days_of_week", "params": {"days": ["friday"]}}],
            },
        )
        assert [change.date for change in result.changes] == march(2, 3, 4, 5, 9, 10, 11, 12)

    def test_date_expressions_used_when_tool_is_unknown(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "toolCall": {"tool": "expand_magic", "params": {}}, "dateExpressions": ["next week"]},
        )
        assert [change.date for change in result.changes] == march(2, 3, 4, 5, 6)

    def test_date_expressions_without_tool_call(self, db_session, member):
        result = resolve(db_session, member, {"type": "set", "dateExpressions": ["tomorrow"]})
        assert [change.date for change in result.changes] == [date(2026, 2, 26)]

    def test_out_of_range_year_in_expression_contributes_nothing(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "dateExpressions": ["monday of march 0000", "tomorrow"]},
        )
        assert [change.date for change in result.changes] == [date(2026, 2, 26)]

    def test_nothing_resolves(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "toolCall": {"tool": "expand_magic", "params": {}}, "dateExpressions": ["whenever"]},
        )
        assert result.changes == []
        assert result.valid_count == result.invalid_count == 0

    def test_successful_empty_result_does_not_fall_back(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {
                "type": "set",
                "toolCall": {"tool": "expand_specific_weeks", "params": {"period": "next_month", "weeks": [0]}},
                "dateExpressions": ["next week"],
            },
        )
        assert result.changes == []


class TestMerging:
    def test_later_action_wins(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "status": "office", "toolCall": NEXT_WEEK},
            {"type": "set", "status": "leave", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-03-04"]}}},
        )
        assert [change.date for change in result.changes] == march(2, 3, 4, 5, 6)
        assert [change.status for change in result.changes] == ["office", "office", "leave", "office", "office"]

    def test_output_is_sorted_across_actions(self, db_session, member):
        result = resolve(
            db_session,
            member,
            {"type": "set", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-03-09"]}}},
            {"type": "clear", "toolCall": {"tool": "resolve_dates", "params": {"dates": ["2026-03-02"]}}},
        )
        assert [change.date for change in result.changes] == march(2, 9)

    def test_resolution_is_idempotent(self, db_session, member, team, add_entry):
        add_entry(team["rahul"], date(2026, 3, 3), "office")
        raw = [
            {"type": "set", "toolCall": {"tool": "expand_month", "params": {"period": "next_month"}}, "referenceUser": "Rahul", "referenceCondition": "absent"},
            {"type": "clear", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "wfh"},
        ]
        first = resolve(db_session, member, *raw)
        second = resolve(db_session, member, *raw)
        assert first == second


class TestBatchedLookups:
    def test_each_lookup_runs_once(self, db_session, member, team, add_entry):
        add_entry(team["rahul"], date(2026, 3, 3), "office")
        store = CountingStore(SqlScheduleStore(db_session))
        plan_actions = actions(
            {"type": "set", "toolCall": NEXT_WEEK, "filterByCurrentStatus": "wfh", "referenceUser": "Rahul", "referenceCondition": "absent"},
            {"type": "set", "toolCall": {"tool": "expand_month", "params": {"period": "next_month"}}, "filterByCurrentStatus": "wfh", "referenceUser": "rahul ", "referenceCondition": "absent"},
        )
        resolve_plan(plan_actions, member, TODAY, store, 90)
        assert store.calls == {"holidays": 1, "entry_statuses": 1, "find_user": 1, "office_dates": 1}

    def test_no_lookups_without_filters(self, db_session, member):
        store = CountingStore(SqlScheduleStore(db_session))
        resolve_plan(actions({"type": "set", "toolCall": NEXT_WEEK}), member, TODAY, store, 90)
        assert store.calls == {"holidays": 1}
