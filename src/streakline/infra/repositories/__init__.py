"""Concrete repository implementations using SQLModel."""

from .badge import SQLModelBadgeRepository
from .habit import SQLModelHabitRepository

__all__ = [
    "SQLModelBadgeRepository",
    "SQLModelHabitRepository",
]
