"""Per-date validation rules.

Rules are checked in a fixed order and the first failure wins:
before the edit window, after the edit window, weekend, holiday.
A date the caller may not edit at all reports the window.
A status problem is checked last and overrides any earlier message,
since no date can be applied with an unrecognised status.
"""

from datetime import date

from workbot.plans.authorization import EditWindow
from workbot.plans.types import VALID_SET_STATUSES, InvalidReason
from workbot.utils.calendar import is_weekend

MESSAGES: dict[InvalidReason, str] = {
    InvalidReason.WEEKEND: "Weekend date - skipped",
    InvalidReason.HOLIDAY: "Holiday - skipped",
    InvalidReason.BEFORE_WINDOW: "Before allowed editing window",
    InvalidReason.AFTER_WINDOW: "Outside allowed editing window",
}


def classify_date(d: date, holidays: frozenset[date], window: EditWindow) -> InvalidReason | None:
    """Return the first window or calendar rule the date breaks, or None."""
    if window.is_before(d):
        return InvalidReason.BEFORE_WINDOW
    if window.is_after(d):
        return InvalidReason.AFTER_WINDOW
    if is_weekend(d):
        return InvalidReason.WEEKEND
    if d in holidays:
        return InvalidReason.HOLIDAY
    return None


def validate_change(
    d: date,
    action_type: str,
    status: str,
    holidays: frozenset[date],
    window: EditWindow,
) -> tuple[InvalidReason | None, str | None]:
    """Validate one candidate change.

    Args:
        d: Candidate date
        action_type: "set" or "clear"
        status: Status the change would record
        holidays: Company holidays
        window: Caller's edit window

    Returns:
        (reason, message); both None when the change is valid
    """
    reason = classify_date(d, holidays, window)
    message = MESSAGES[reason] if reason else None

    if action_type == "set" and status not in VALID_SET_STATUSES:
        return InvalidReason.INVALID_STATUS, f"Invalid status: {status}"
    return reason, message
