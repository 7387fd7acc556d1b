"""Pytest configuration and shared fixtures for Streakline tests.

Provides an isolated SQLite database per test, a session factory matching the
one repositories receive in production, and small factories for users, habits
and completions.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from streakline.models import Habit, HabitCompletion, MonthlyBadge, User  # noqa: F401
from streakline.services.dates import format_day_key

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point configuration at a temporary data directory for every test."""

    monkeypatch.setenv("STREAKLINE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STREAKLINE_DEV_MODE", "true")
    monkeypatch.delenv("STREAKLINE_DATABASE_URL", raising=False)
    monkeypatch.delenv("STREAKLINE_USERNAME", raising=False)
    yield


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test."""

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """A session for arranging test data directly."""

    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory with the same commit/rollback contract as production."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""

    existing = db_session.exec(select(User).where(User.username == "tester")).first()
    if existing:
        return existing
    u = User(username="tester", password_hash="dummy-hash")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def habit_factory(db_session, user):
    """Factory for creating persisted habits."""

    def _create_habit(name: str = "Test Habit", owner: User | None = None) -> Habit:
        owner = owner or user
        habit = Habit(user_id=owner.id, name=name)
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def mark_done(db_session, user):
    """Record completions for a habit on each of the given days."""

    def _mark(habit: Habit, *days: date | str) -> None:
        for d in days:
            key = d if isinstance(d, str) else format_day_key(d)
            db_session.add(HabitCompletion(habit_id=habit.id, day=key, user_id=user.id))
        db_session.commit()

    return _mark
