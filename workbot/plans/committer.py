"""Commit accepted changes to the entry store.

Every item is re-validated (date format, status, edit window) because
the client may submit anything. Business-rule rejections are reported
per item; a storage failure rolls back the whole batch.
"""

import re
from datetime import date

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workbot.db.models import Entry
from workbot.plans.authorization import EditWindow, edit_window
from workbot.plans.errors import CommitAbortedError, CommitBatchError
from workbot.plans.resolver import DEFAULT_HALF_DAY_PORTION, DEFAULT_WORKING_PORTION
from workbot.plans.types import VALID_CHANGE_STATUSES, Caller, ChangeItem, CommitItemResult, CommitResult, InvalidReason
from workbot.plans.validators import MESSAGES

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_item(item: ChangeItem, window: EditWindow) -> tuple[date | None, str | None]:
    if not _ISO_RE.fullmatch(item.date):
        return None, f"Invalid date format: {item.date}"
    try:
        d = date.fromisoformat(item.date)
    except ValueError:
        return None, f"Invalid date format: {item.date}"
    if item.status not in VALID_CHANGE_STATUSES:
        return None, f"Invalid status: {item.status}"
    if window.is_before(d):
        return None, MESSAGES[InvalidReason.BEFORE_WINDOW]
    if window.is_after(d):
        return None, MESSAGES[InvalidReason.AFTER_WINDOW]
    return d, None


def _apply_fields(entry: Entry, item: ChangeItem) -> None:
    entry.status = item.status
    note = (item.note or "").strip()
    entry.note = note or None
    if item.status == "leave" and item.leave_duration == "half":
        entry.leave_duration = "half"
        entry.half_day_portion = item.half_day_portion or DEFAULT_HALF_DAY_PORTION
        entry.working_portion = item.working_portion or DEFAULT_WORKING_PORTION
    else:
        entry.leave_duration = None
        entry.half_day_portion = None
        entry.working_portion = None


def commit_changes(
    session: Session,
    caller: Caller,
    items: list[ChangeItem],
    today: date,
    max_batch: int,
    window_days: int,
) -> CommitResult:
    """Write changes for the caller in a single transaction.

    Args:
        session: Database session; committed on success, rolled back on failure
        caller: User whose entries are written
        items: Changes in submission order; a later item wins on a shared date
        today: Reference date for the edit window
        max_batch: Maximum number of items per call
        window_days: Days past the reference date a member may edit

    Returns:
        CommitResult with a per-item outcome

    Raises:
        CommitBatchError: If items is empty or longer than max_batch
        CommitAbortedError: If storage fails; nothing is saved
    """
    if not items:
        raise CommitBatchError("No changes to apply.")
    if len(items) > max_batch:
        raise CommitBatchError(f"Too many changes: at most {max_batch} can be applied at once.")

    window = edit_window(caller, today, window_days)
    checked = [(item, *_check_item(item, window)) for item in items]
    wanted = {d for _, d, _ in checked if d is not None}

    results: list[CommitItemResult] = []
    try:
        existing: dict[date, Entry] = {}
        if wanted:
            rows = session.execute(
                select(Entry).where(Entry.user_id == caller.user_id, Entry.date.in_(sorted(wanted)))
            ).scalars()
            existing = {entry.date: entry for entry in rows}

        for item, d, error in checked:
            if d is None:
                results.append(CommitItemResult(date=item.date, success=False, message=error))
                continue

            entry = existing.get(d)
            if item.status == "clear":
                if entry is not None:
                    session.delete(entry)
                    del existing[d]
                    # Flush so a later insert for the same date does not hit the unique constraint
                    session.flush()
                results.append(CommitItemResult(date=item.date, success=True, message="Cleared"))
                continue

            if entry is None:
                entry = Entry(user_id=caller.user_id, date=d)
                session.add(entry)
                existing[d] = entry
            _apply_fields(entry, item)
            results.append(CommitItemResult(date=item.date, success=True, message=f"Set to {item.status}"))

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Commit failed, rolled back", user_id=caller.user_id, items=len(items))
        raise CommitAbortedError(e) from e

    processed = sum(1 for result in results if result.success)
    logger.info("Changes committed", user_id=caller.user_id, processed=processed, failed=len(results) - processed)
    return CommitResult(processed=processed, failed=len(results) - processed, results=results)
