"""Workbot API endpoints.

Three steps, each its own request so the client can show a preview:
- /parse: command -> plan (LLM proposer, envelope checks, target-user guard)
- /resolve: plan actions -> validated per-date changes
- /apply: accepted changes -> one committed transaction
"""

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from workbot.api.dependencies.auth import get_current_caller
from workbot.config.settings import settings
from workbot.db.session import get_db
from workbot.llm.proposer import LLMPlanProposer, PlanProposer
from workbot.plans import (
    Caller,
    ChangeItem,
    CommitAbortedError,
    CommitBatchError,
    CommitResult,
    EmptyPlanError,
    InvalidCommandError,
    Plan,
    PlanParseError,
    ResolveResult,
    SqlScheduleStore,
    TargetUserForbiddenError,
    commit_changes,
    guard_target_user,
    parse_plan,
    plan_from_dict,
    resolve_plan,
    sanitise_command,
)

router = APIRouter(prefix="/api/workbot", tags=["workbot"])


class ParseRequest(BaseModel):
    command: str


class ResolveRequest(BaseModel):
    actions: list[Any] = Field(default_factory=list)


class ApplyRequest(BaseModel):
    changes: list[ChangeItem] = Field(default_factory=list)


def get_proposer() -> PlanProposer:
    return LLMPlanProposer()


def get_reference_date() -> date:
    """Today in the configured timezone."""
    return datetime.now(ZoneInfo(settings.timezone)).date()


@router.post("/parse", response_model=Plan, response_model_exclude_none=True)
async def parse_command(
    request: ParseRequest,
    caller: Caller = Depends(get_current_caller),
    proposer: PlanProposer = Depends(get_proposer),
    today: date = Depends(get_reference_date),
) -> Plan:
    """Turn a natural-language command into a plan for the caller."""
    try:
        command = sanitise_command(request.command, settings.max_command_length)
    except InvalidCommandError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    try:
        raw = await proposer.propose(command, today, caller.name)
    except Exception as e:
        logger.warning(f"LLM call failed for workbot parse: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to parse command. Please try again.",
        ) from e

    try:
        plan = parse_plan(raw)
        plan = guard_target_user(plan, caller.name)
    except (PlanParseError, EmptyPlanError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    except TargetUserForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e

    logger.info("Command parsed", user_id=caller.user_id, actions=len(plan.actions))
    return plan


@router.post("/resolve", response_model=ResolveResult)
def resolve_actions(
    request: ResolveRequest,
    caller: Caller = Depends(get_current_caller),
    session: Session = Depends(get_db),
    today: date = Depends(get_reference_date),
) -> ResolveResult:
    """Resolve plan actions into a per-date preview."""
    try:
        plan = plan_from_dict({"actions": request.actions})
    except EmptyPlanError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="actions array is required.") from e
    except PlanParseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e

    return resolve_plan(plan.actions, caller, today, SqlScheduleStore(session), settings.member_window_days)


@router.post("/apply", response_model=CommitResult)
def apply_changes(
    request: ApplyRequest,
    caller: Caller = Depends(get_current_caller),
    session: Session = Depends(get_db),
    today: date = Depends(get_reference_date),
) -> CommitResult:
    """Commit accepted changes for the caller."""
    try:
        return commit_changes(
            session,
            caller,
            request.changes,
            today,
            settings.max_apply_batch,
            settings.member_window_days,
        )
    except CommitBatchError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except CommitAbortedError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message) from e
