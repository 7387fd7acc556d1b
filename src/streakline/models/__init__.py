"""SQLModel table exports."""

from .badge import MonthlyBadge
from .habit import Habit, HabitCompletion
from .user import User

__all__ = [
    "Habit",
    "HabitCompletion",
    "MonthlyBadge",
    "User",
]
