"""Plan handling: envelope parsing, resolution and commit.

This module provides:
- Envelope parsing of proposer output into a Plan
- Resolution of plan actions into validated per-date changes
- Transactional commit of accepted changes
"""

from workbot.plans.committer import commit_changes
from workbot.plans.envelope import guard_target_user, parse_plan, plan_from_dict, sanitise_command
from workbot.plans.errors import (
    CommitAbortedError,
    CommitBatchError,
    EmptyPlanError,
    InvalidCommandError,
    PlanParseError,
    TargetUserForbiddenError,
    WorkbotError,
)
from workbot.plans.repository import ScheduleStore, SqlScheduleStore
from workbot.plans.resolver import resolve_plan
from workbot.plans.types import Action, Caller, ChangeItem, CommitResult, Plan, ResolvedChange, ResolveResult

__all__ = [
    "Action",
    "Caller",
    "ChangeItem",
    "CommitAbortedError",
    "CommitBatchError",
    "CommitResult",
    "EmptyPlanError",
    "InvalidCommandError",
    "Plan",
    "PlanParseError",
    "ResolveResult",
    "ResolvedChange",
    "ScheduleStore",
    "SqlScheduleStore",
    "TargetUserForbiddenError",
    "WorkbotError",
    "commit_changes",
    "guard_target_user",
    "parse_plan",
    "plan_from_dict",
    "resolve_plan",
    "sanitise_command",
]
