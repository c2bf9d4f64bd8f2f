"""Plan, resolution and commit types.

Plans arrive as camelCase JSON (from the proposer or a client) and are
accepted by alias or by field name. Free-text fields that the resolver
validates per date (status, filterByCurrentStatus, ...) are kept as plain
strings here so an unexpected value marks dates invalid instead of
rejecting the whole plan.
"""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from workbot.dates.types import Modifier, ToolCall

VALID_SET_STATUSES: frozenset[str] = frozenset({"office", "leave"})
VALID_CHANGE_STATUSES: frozenset[str] = frozenset({"office", "leave", "clear"})
VALID_STATUS_FILTERS: frozenset[str] = frozenset({"office", "leave", "wfh"})


class InvalidReason(StrEnum):
    """Why a resolved date cannot be applied."""

    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    BEFORE_WINDOW = "before_window"
    AFTER_WINDOW = "after_window"
    INVALID_STATUS = "invalid_status"
    INVALID_FILTER = "invalid_filter"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Action(_CamelModel):
    """One step of a plan: set or clear a status on a generated date set.

    Attributes:
        type: "set" or "clear"
        status: Target status for "set" ("office" or "leave")
        tool_call: Generator producing the candidate dates
        modifiers: Filters applied to the generated dates, in order
        date_expressions: Legacy phrases, used only as a fallback
        filter_by_current_status: Only touch dates currently in this status
        reference_user: Another user whose presence filters the dates
        reference_condition: "present" or "absent" for reference_user
    """

    type: Literal["set", "clear"]
    status: str | None = None
    tool_call: ToolCall | None = Field(default=None, alias="toolCall")
    modifiers: list[Modifier] = Field(default_factory=list)
    date_expressions: list[str] = Field(default_factory=list, alias="dateExpressions")
    note: str | None = None
    leave_duration: str | None = Field(default=None, alias="leaveDuration")
    half_day_portion: str | None = Field(default=None, alias="halfDayPortion")
    working_portion: str | None = Field(default=None, alias="workingPortion")
    filter_by_current_status: str | None = Field(default=None, alias="filterByCurrentStatus")
    reference_user: str | None = Field(default=None, alias="referenceUser")
    reference_condition: str | None = Field(default=None, alias="referenceCondition")

    @property
    def change_status(self) -> str:
        """Status recorded on resolved changes; "set" without status means office."""
        if self.type == "clear":
            return "clear"
        return self.status or "office"

    @property
    def is_half_day_leave(self) -> bool:
        return self.change_status == "leave" and self.leave_duration == "half"

    @property
    def has_reference(self) -> bool:
        return bool(self.reference_user and self.reference_user.strip() and self.reference_condition)


class Plan(_CamelModel):
    actions: list[Action]
    summary: str = ""
    target_user: str | None = Field(default=None, alias="targetUser")


class ResolvedChange(_CamelModel):
    """One candidate date after validation.

    Invalid changes are kept so the client can show why a date was skipped.
    """

    date: date
    day: str
    status: str
    note: str | None = None
    leave_duration: Literal["half"] | None = Field(default=None, alias="leaveDuration")
    half_day_portion: str | None = Field(default=None, alias="halfDayPortion")
    working_portion: str | None = Field(default=None, alias="workingPortion")
    valid: bool = True
    validation_message: str | None = Field(default=None, alias="validationMessage")
    invalid_reason: InvalidReason | None = Field(default=None, alias="invalidReason")


class ResolveResult(_CamelModel):
    changes: list[ResolvedChange]
    valid_count: int = Field(alias="validCount")
    invalid_count: int = Field(alias="invalidCount")


class ChangeItem(_CamelModel):
    """A change the client accepted and submits for commit.

    date and status stay strings; the committer re-validates them per item.
    """

    date: str
    status: str
    note: str | None = None
    leave_duration: str | None = Field(default=None, alias="leaveDuration")
    half_day_portion: str | None = Field(default=None, alias="halfDayPortion")
    working_portion: str | None = Field(default=None, alias="workingPortion")


class CommitItemResult(_CamelModel):
    date: str
    success: bool
    message: str | None = None


class CommitResult(_CamelModel):
    processed: int
    failed: int
    results: list[CommitItemResult]


@dataclass(frozen=True)
class Caller:
    """Authenticated user a request acts for."""

    user_id: str
    name: str
    is_admin: bool = False
