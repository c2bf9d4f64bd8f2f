"""Role-based edit windows.

Admins may edit any date. Members may edit from the first day of the
reference month through reference date + member_window_days, inclusive.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from workbot.plans.types import Caller


@dataclass(frozen=True)
class EditWindow:
    """Inclusive date bounds; None means unbounded on that side."""

    start: date | None = None
    end: date | None = None

    def is_before(self, d: date) -> bool:
        return self.start is not None and d < self.start

    def is_after(self, d: date) -> bool:
        return self.end is not None and d > self.end

    def contains(self, d: date) -> bool:
        return not self.is_before(d) and not self.is_after(d)


def edit_window(caller: Caller, today: date, member_window_days: int) -> EditWindow:
    """Build the caller's edit window relative to the reference date."""
    if caller.is_admin:
        return EditWindow()
    return EditWindow(start=today.replace(day=1), end=today + timedelta(days=member_window_days))
