"""Habit services: streaks, momentum and the completion toggle.

The module has two halves. The top half is pure: every function takes a
completion set (``yyyy-MM-dd`` strings or ``date`` values) plus an explicit
reference date or day range, and never reads the clock. The bottom half,
:class:`HabitTracker`, binds those functions to a :class:`HabitRepository` for a
single user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.habit import HabitRepository
from ..logging_config import get_logger
from ..models.habit import Habit
from .dates import DayLike, format_day_key, normalize_completion_days

logger = get_logger(__name__)

ONE_DAY = timedelta(days=1)

# (exclusive upper bound, label); streaks at or past the last bound are "Legendary".
STREAK_TIERS: tuple[tuple[int, str], ...] = (
    (1, "No Streak"),
    (10, "Warming Up"),
    (50, "On Fire"),
    (100, "Unstoppable"),
    (200, "Master"),
)
TOP_TIER = "Legendary"


class PersistenceError(RuntimeError):
    """A storage write or read failed; in-memory state was left as it was."""


@dataclass(frozen=True)
class MomentumPoint:
    """Running momentum score after ``day`` has been counted."""

    day: date
    score: int


# ---------------------------------------------------------------------------
# Pure folds over completion sets
# ---------------------------------------------------------------------------


def compute_streak(completion_days: Iterable[DayLike], reference_date: date) -> int:
    """Return the consecutive-day run ending on ``reference_date`` or the day before.

    An unfinished ``reference_date`` does not break the chain: when it is
    missing, counting starts from yesterday. When yesterday is missing too the
    streak is 0.
    """

    days = normalize_completion_days(completion_days)

    cursor = reference_date
    if cursor not in days:
        cursor -= ONE_DAY
        if cursor not in days:
            return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak


def compute_longest_streak(completion_days: Iterable[DayLike]) -> int:
    """Return the longest consecutive run anywhere in the history."""

    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(normalize_completion_days(completion_days)):
        if last_day is not None and d == last_day + ONE_DAY:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d
    return longest


def compute_momentum(
    completion_days: Iterable[DayLike], day_range: Sequence[date]
) -> list[MomentumPoint]:
    """Fold ``day_range`` into a running score: +1 for a completed day, -1 otherwise.

    One point is emitted per day, in the order given; the score is unbounded.
    """

    days = normalize_completion_days(completion_days)
    score = 0
    series: list[MomentumPoint] = []
    for day in day_range:
        score += 1 if day in days else -1
        series.append(MomentumPoint(day=day, score=score))
    return series


def toggle_completion(completion_days: Iterable[str], day: date) -> tuple[frozenset[str], bool]:
    """Flip membership of ``day`` and return ``(new_set, now_completed)``.

    The input is not modified.
    """

    key = format_day_key(day)
    current = frozenset(completion_days)
    if key in current:
        return current - {key}, False
    return current | {key}, True


def streak_tier(streak: int) -> str:
    """Display label for a streak length."""

    for bound, label in STREAK_TIERS:
        if streak < bound:
            return label
    return TOP_TIER


def daily_progress(
    habits: Sequence[Habit], completions: Mapping[int, Iterable[DayLike]], day: date
) -> tuple[int, int, int]:
    """Return ``(completed, total, percent)`` for one day across all habits."""

    total = len(habits)
    completed = sum(
        1 for habit in habits if day in normalize_completion_days(completions.get(habit.id, ()))
    )
    percent = round(completed / total * 100) if total else 0
    return completed, total, percent


def rank_streaks(
    habits: Sequence[Habit], completions: Mapping[int, Iterable[DayLike]], reference_date: date
) -> list[tuple[Habit, int]]:
    """Habits paired with their current streak, longest first (stable on ties)."""

    scored = [
        (habit, compute_streak(completions.get(habit.id, ()), reference_date)) for habit in habits
    ]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def strongest_streak(
    habits: Sequence[Habit], completions: Mapping[int, Iterable[DayLike]], reference_date: date
) -> Optional[tuple[Habit, int]]:
    """The habit with the highest current streak, or ``None`` when every streak is 0."""

    best: Optional[tuple[Habit, int]] = None
    for habit in habits:
        streak = compute_streak(completions.get(habit.id, ()), reference_date)
        if streak > (best[1] if best else 0):
            best = (habit, streak)
    return best


# ---------------------------------------------------------------------------
# Repository-backed tracker
# ---------------------------------------------------------------------------


@dataclass
class HabitSnapshot:
    """Read-only view of one user's habits and completion sets."""

    habits: list[Habit]
    completions: dict[int, frozenset[str]] = field(default_factory=dict)

    def days_for(self, habit_id: int) -> frozenset[str]:
        return self.completions.get(habit_id, frozenset())


class HabitTracker:
    """Habit CRUD and completion toggling for a single user.

    Completion sets are cached after :meth:`snapshot`; :meth:`toggle` updates the
    cache first and restores the previous set when the write fails.
    """

    def __init__(self, repository: HabitRepository, *, user_id: int):
        self.repository = repository
        self.user_id = user_id
        self._cache: dict[int, frozenset[str]] = {}

    def create_habit(self, name: str) -> Habit:
        name = (name or "").strip()
        if not name:
            raise ValueError("Habit name cannot be empty")
        habit = self._guard(self.repository.create, Habit(name=name, user_id=self.user_id), user_id=self.user_id)
        logger.info("Habit created", extra={"habit_id": habit.id, "user_id": self.user_id})
        return habit

    def delete_habit(self, habit_id: int) -> None:
        """Remove the habit; its completion history is kept."""

        self.require_habit(habit_id)
        self._guard(self.repository.delete, habit_id, user_id=self.user_id)
        self._cache.pop(habit_id, None)
        logger.info("Habit deleted", extra={"habit_id": habit_id, "user_id": self.user_id})

    def require_habit(self, habit_id: int) -> Habit:
        habit = self._guard(self.repository.get_by_id, habit_id, user_id=self.user_id)
        if habit is None:
            raise ValueError(f"Habit {habit_id} not found")
        return habit

    def find_habit(self, ref: str) -> Habit:
        """Resolve a habit by numeric id or exact name."""

        ref = ref.strip()
        if ref.isdigit():
            return self.require_habit(int(ref))
        habit = self._guard(self.repository.get_by_name, ref, user_id=self.user_id)
        if habit is None:
            raise ValueError(f"Habit {ref!r} not found")
        return habit

    def list_habits(self) -> list[Habit]:
        return self._guard(self.repository.list_all, user_id=self.user_id)

    def history(self, habit_id: int) -> frozenset[str]:
        if habit_id not in self._cache:
            days = self._guard(self.repository.completion_days, habit_id, user_id=self.user_id)
            self._cache[habit_id] = frozenset(days)
        return self._cache[habit_id]

    def snapshot(self) -> HabitSnapshot:
        habits = self.list_habits()
        completions = self._guard(
            self.repository.completion_map, [h.id for h in habits], user_id=self.user_id
        )
        self._cache.update({hid: frozenset(days) for hid, days in completions.items()})
        return HabitSnapshot(
            habits=habits,
            completions={h.id: self._cache.get(h.id, frozenset()) for h in habits},
        )

    def toggle(self, habit_id: int, day: date) -> bool:
        """Toggle completion of ``habit_id`` on ``day``; return the new state."""

        self.require_habit(habit_id)
        previous = self.history(habit_id)
        updated, completed = toggle_completion(previous, day)
        self._cache[habit_id] = updated

        key = format_day_key(day)
        try:
            if completed:
                self.repository.add_completion(habit_id, key, user_id=self.user_id)
            else:
                self.repository.remove_completion(habit_id, key, user_id=self.user_id)
        except SQLAlchemyError as exc:
            self._cache[habit_id] = previous
            logger.error(
                "Failed to toggle completion",
                extra={"habit_id": habit_id, "day": key},
                exc_info=True,
            )
            raise PersistenceError(f"Could not save completion for {key}") from exc

        logger.info(
            "Completion toggled",
            extra={"habit_id": habit_id, "day": key, "completed": completed},
        )
        return completed

    def streaks(self, reference_date: date) -> list[tuple[Habit, int]]:
        snap = self.snapshot()
        return rank_streaks(snap.habits, snap.completions, reference_date)

    @staticmethod
    def _guard(func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Storage operation failed", extra={"operation": func.__name__}, exc_info=True)
            raise PersistenceError(str(exc)) from exc


__all__ = [
    "HabitSnapshot",
    "HabitTracker",
    "MomentumPoint",
    "PersistenceError",
    "STREAK_TIERS",
    "compute_longest_streak",
    "compute_momentum",
    "compute_streak",
    "daily_progress",
    "rank_streaks",
    "streak_tier",
    "strongest_streak",
    "toggle_completion",
]
