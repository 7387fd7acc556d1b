"""Habit tracking tables."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class Habit(SQLModel, table=True):
    """A user-defined habit tracked once per calendar day."""

    __tablename__: ClassVar[str] = "habit"
    # Completions are kept after a delete, so ids must never be handed out twice.
    __table_args__: ClassVar[dict] = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class HabitCompletion(SQLModel, table=True):
    """A habit marked done on one calendar day.

    ``day`` holds the ``yyyy-MM-dd`` key exactly as written. ``habit_id`` is not a
    foreign key: completion history outlives the habit row it belongs to.
    """

    __tablename__: ClassVar[str] = "habit_completion"

    habit_id: int = Field(primary_key=True, index=True)
    day: str = Field(primary_key=True, max_length=10, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
