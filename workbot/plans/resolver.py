"""Plan resolution: actions -> validated, deduplicated per-date changes.

For each action the candidate dates come from the ordered strategies in
workbot.plans.strategies. Candidates are then narrowed by the optional
current-status filter and reference-user condition, classified against
the calendar and the caller's edit window, and merged across actions
with the later action winning on a shared date.

Store lookups are batched: the caller's entries are fetched once for all
filtered candidates, and each distinct reference user is looked up once.
"""

from collections import defaultdict
from datetime import date

from loguru import logger

from workbot.dates import ModifierContext
from workbot.plans.authorization import EditWindow, edit_window
from workbot.plans.repository import ScheduleStore
from workbot.plans.strategies import candidate_dates
from workbot.plans.types import (
    VALID_STATUS_FILTERS,
    Action,
    Caller,
    InvalidReason,
    ResolvedChange,
    ResolveResult,
)
from workbot.plans.validators import validate_change
from workbot.utils.calendar import weekday_label

NO_ENTRY_STATUS = "wfh"
DEFAULT_HALF_DAY_PORTION = "first-half"
DEFAULT_WORKING_PORTION = "wfh"


def _reference_key(action: Action) -> str | None:
    if not action.has_reference:
        return None
    return action.reference_user.strip().lower()


def _fetch_current_statuses(
    store: ScheduleStore,
    caller: Caller,
    planned: list[tuple[Action, list[date]]],
) -> dict[date, str]:
    wanted = {d for action, dates in planned if action.filter_by_current_status for d in dates}
    if not wanted:
        return {}
    return store.entry_statuses(caller.user_id, wanted)


def _fetch_reference_presence(
    store: ScheduleStore,
    planned: list[tuple[Action, list[date]]],
) -> dict[str, set[date]]:
    """Office dates per distinct reference user; unknown users map to an empty set."""
    wanted: dict[str, set[date]] = defaultdict(set)
    names: dict[str, str] = {}
    for action, dates in planned:
        key = _reference_key(action)
        if key is None:
            continue
        wanted[key].update(dates)
        names.setdefault(key, action.reference_user.strip())

    presence: dict[str, set[date]] = {}
    for key, dates in wanted.items():
        user = store.find_user(names[key])
        presence[key] = store.office_dates(user.id, dates) if user is not None else set()
    return presence


def _passes_reference(action: Action, d: date, presence: dict[str, set[date]]) -> bool:
    key = _reference_key(action)
    if key is None:
        return True
    condition = action.reference_condition.strip().lower()
    present = d in presence.get(key, set())
    if condition == "present":
        return present
    if condition == "absent":
        return not present
    return True


def _build_change(action: Action, d: date, holidays: frozenset[date], window: EditWindow) -> ResolvedChange:
    status = action.change_status
    reason, message = validate_change(d, action.type, status, holidays, window)

    fields: dict = {
        "date": d,
        "day": weekday_label(d),
        "status": status,
        "note": action.note,
        "valid": reason is None,
        "validation_message": message,
        "invalid_reason": reason,
    }
    if action.is_half_day_leave:
        fields["leave_duration"] = "half"
        fields["half_day_portion"] = action.half_day_portion or DEFAULT_HALF_DAY_PORTION
        fields["working_portion"] = action.working_portion or DEFAULT_WORKING_PORTION
    return ResolvedChange(**fields)


def _invalid_filter_change(action: Action, d: date) -> ResolvedChange:
    return ResolvedChange(
        date=d,
        day=weekday_label(d),
        status=action.change_status,
        note=action.note,
        valid=False,
        validation_message=f"Invalid filterByCurrentStatus: {action.filter_by_current_status}",
        invalid_reason=InvalidReason.INVALID_FILTER,
    )


def resolve_plan(
    actions: list[Action],
    caller: Caller,
    today: date,
    store: ScheduleStore,
    window_days: int,
) -> ResolveResult:
    """Resolve plan actions into per-date changes.

    Args:
        actions: Plan actions, in plan order
        caller: User the plan is resolved for
        today: Reference date for relative periods and the edit window
        store: Entry, holiday and user lookups
        window_days: Days past the reference date a member may edit

    Returns:
        ResolveResult with one change per date, sorted by date. Invalid
        changes are included and counted separately.
    """
    holidays = store.holidays()
    context = ModifierContext(holidays=holidays)
    window = edit_window(caller, today, window_days)

    planned = [(action, candidate_dates(action, today, context)) for action in actions]
    current_statuses = _fetch_current_statuses(store, caller, planned)
    presence = _fetch_reference_presence(store, planned)

    by_date: dict[date, ResolvedChange] = {}
    for action, dates in planned:
        status_filter = (action.filter_by_current_status or "").strip().lower()
        if action.has_reference and action.reference_condition.strip().lower() not in ("present", "absent"):
            logger.warning(
                "Ignoring unknown reference condition",
                reference_user=action.reference_user,
                reference_condition=action.reference_condition,
            )

        for d in dates:
            if status_filter and status_filter not in VALID_STATUS_FILTERS:
                by_date[d] = _invalid_filter_change(action, d)
                continue
            if status_filter and current_statuses.get(d, NO_ENTRY_STATUS) != status_filter:
                continue
            if not _passes_reference(action, d, presence):
                continue
            by_date[d] = _build_change(action, d, holidays, window)

    changes = [by_date[d] for d in sorted(by_date)]
    valid_count = sum(1 for change in changes if change.valid)
    logger.info(
        "Plan resolved",
        user_id=caller.user_id,
        actions=len(actions),
        valid=valid_count,
        invalid=len(changes) - valid_count,
    )
    return ResolveResult(changes=changes, valid_count=valid_count, invalid_count=len(changes) - valid_count)
