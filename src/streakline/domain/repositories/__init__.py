"""Repository protocol definitions for domain layer."""

from .badge import BadgeRepository
from .habit import HabitRepository

__all__ = [
    "BadgeRepository",
    "HabitRepository",
]
