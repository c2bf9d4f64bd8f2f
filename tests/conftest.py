"""Root conftest for all tests.

Shared fixtures: a fixed reference date, an isolated in-memory SQLite
database per test, and a small seeded team.
"""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workbot.db.models import Base, Entry, Holiday, User
from workbot.plans.types import Caller

REFERENCE_DATE = date(2026, 2, 25)  # Wednesday
HOLIDAY = date(2026, 3, 10)


@pytest.fixture
def today() -> date:
    """Reference date every relative expression resolves against."""
    return REFERENCE_DATE


@pytest.fixture(scope="function")
def db_session():
    """Provides an in-memory SQLite session for tests.

    StaticPool keeps the single connection alive so every session created
    by the API layer sees the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def team(db_session: Session) -> dict[str, User]:
    """Seed users and the company holiday."""
    users = {
        "alice": User(name="Alice Kumar", email="alice@example.com"),
        "rahul": User(name="Rahul Sharma", email="rahul@example.com"),
        "rahula": User(name="Rahula Iyer", email="rahula@example.com"),
        "priya": User(name="Priya Nair", email="priya@example.com", role="admin"),
        "gone": User(name="Gone Person", email="gone@example.com", is_active=False),
    }
    db_session.add_all(users.values())
    db_session.add(Holiday(date=HOLIDAY, name="Holi"))
    db_session.commit()
    return users


@pytest.fixture
def member(team: dict[str, User]) -> Caller:
    alice = team["alice"]
    return Caller(user_id=alice.id, name=alice.name, is_admin=False)


@pytest.fixture
def admin(team: dict[str, User]) -> Caller:
    priya = team["priya"]
    return Caller(user_id=priya.id, name=priya.name, is_admin=True)


@pytest.fixture
def add_entry(db_session: Session):
    """Factory fixture inserting one entry and committing."""

    def _add(user: User, day: date, status: str = "office", **fields) -> Entry:
        entry = Entry(user_id=user.id, date=day, status=status, **fields)
        db_session.add(entry)
        db_session.commit()
        return entry

    return _add
