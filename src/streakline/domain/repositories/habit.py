"""Habit repository protocol."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from ...models.habit import Habit, HabitCompletion


class HabitRepository(Protocol):
    """Repository for habits and their per-day completion keys."""

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by name."""
        ...

    def list_all(self, *, user_id: int) -> list[Habit]:
        """List habits, newest first."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit; completion history is retained."""
        ...

    # Completion operations
    def completion_days(self, habit_id: int, *, user_id: int) -> set[str]:
        """All completion day keys recorded for a habit."""
        ...

    def completion_days_between(
        self, habit_id: int, start_key: str, end_key: str, *, user_id: int
    ) -> set[str]:
        """Completion day keys within an inclusive key range."""
        ...

    def completion_map(self, habit_ids: Iterable[int], *, user_id: int) -> dict[int, set[str]]:
        """Completion day keys per habit id; every requested id is present."""
        ...

    def add_completion(self, habit_id: int, day_key: str, *, user_id: int) -> None:
        """Mark a habit done on a day (idempotent)."""
        ...

    def remove_completion(self, habit_id: int, day_key: str, *, user_id: int) -> None:
        """Clear a completion (no-op when absent)."""
        ...

    def list_completions(self, *, user_id: int) -> list[HabitCompletion]:
        """Every completion row for the user, ordered by habit then day."""
        ...
