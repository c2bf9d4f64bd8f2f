"""Read access to entries, holidays and users for plan resolution.

The resolver depends on the ScheduleStore protocol only. SqlScheduleStore
is the SQLAlchemy-backed implementation used by the API; tests may pass
any object with the same methods.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from workbot.db.models import Entry, Holiday, User


@dataclass(frozen=True)
class UserRef:
    id: str
    name: str


class ScheduleStore(Protocol):
    """Lookups the resolver needs, each issued at most once per request."""

    def holidays(self) -> frozenset[date]: ...

    def entry_statuses(self, user_id: str, dates: Iterable[date]) -> dict[date, str]: ...

    def find_user(self, name: str) -> UserRef | None: ...

    def office_dates(self, user_id: str, dates: Iterable[date]) -> set[date]: ...


class SqlScheduleStore:
    """ScheduleStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def holidays(self) -> frozenset[date]:
        return frozenset(self.session.execute(select(Holiday.date)).scalars().all())

    def entry_statuses(self, user_id: str, dates: Iterable[date]) -> dict[date, str]:
        """Map each date that has an entry for the user to its status.

        Dates without an entry are absent from the result (work from home).
        """
        wanted = sorted(set(dates))
        if not wanted:
            return {}
        rows = self.session.execute(
            select(Entry.date, Entry.status).where(Entry.user_id == user_id, Entry.date.in_(wanted))
        ).all()
        return {row.date: row.status for row in rows}

    def find_user(self, name: str) -> UserRef | None:
        """Find an active user by name.

        Tries a case-insensitive exact match first, then a whole-word
        partial match ("Rahul" matches "Rahul Sharma" but not "Rahula").
        """
        needle = name.strip().lower()
        if not needle:
            return None

        exact = self.session.execute(
            select(User).where(func.lower(User.name) == needle, User.is_active.is_(True)).order_by(User.name)
        ).scalars().first()
        if exact is not None:
            return UserRef(id=exact.id, name=exact.name)

        word = re.compile(rf"\b{re.escape(needle)}\b", re.IGNORECASE)
        candidates = self.session.execute(
            select(User)
            .where(func.lower(User.name).contains(needle, autoescape=True), User.is_active.is_(True))
            .order_by(User.name)
        ).scalars()
        for user in candidates:
            if word.search(user.name):
                return UserRef(id=user.id, name=user.name)

        logger.info("Reference user not found", reference_user=name)
        return None

    def office_dates(self, user_id: str, dates: Iterable[date]) -> set[date]:
        """Dates on which the user has an office entry."""
        wanted = sorted(set(dates))
        if not wanted:
            return set()
        rows = self.session.execute(
            select(Entry.date).where(Entry.user_id == user_id, Entry.status == "office", Entry.date.in_(wanted))
        ).scalars()
        return set(rows)
