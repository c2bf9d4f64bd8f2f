from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """Directory entry for a team member.

    Stores:
    - id: User ID (string UUID format)
    - name: Display name, used for reference-user lookups
    - role: "admin" or "member"
    - is_active: Inactive users are ignored by name lookups
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="member")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Entry(Base):
    """Attendance entry for one user on one date.

    No row for a date means the user works from home (the default).

    Schema:
    - status: "office" or "leave"
    - leave_duration / half_day_portion / working_portion: only set for half-day leave
    - note: Optional free-text note (max 500 chars)

    Constraints:
    - Unique constraint: (user_id, date), one entry per user per day
    """

    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    leave_duration: Mapped[str | None] = mapped_column(String, nullable=True)
    half_day_portion: Mapped[str | None] = mapped_column(String, nullable=True)
    working_portion: Mapped[str | None] = mapped_column(String, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_entry_user_date"),
        Index("idx_entries_date_status", "date", "status"),
    )


class Holiday(Base):
    """Company holiday. Read-only from the engine's point of view."""

    __tablename__ = "holidays"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
