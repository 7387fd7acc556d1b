"""Period statistics across all habits for a chosen window of days."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..models.habit import Habit
from .dates import DayLike, normalize_completion_days


@dataclass(frozen=True)
class DayCount:
    """Number of habits completed on a single day."""

    day: date
    completed: int


@dataclass(frozen=True)
class HabitRate:
    """Share of window days a habit was completed, as a 0-100 float."""

    habit: Habit
    completed_days: int
    rate: float

    @property
    def display_rate(self) -> int:
        return round(self.rate)


@dataclass(frozen=True)
class PeriodStats:
    """Aggregate figures for a window. Percentages are 0-100."""

    days: list[DayCount]
    habit_rates: list[HabitRate]
    best_day: Optional[DayCount]
    most_consistent: Optional[HabitRate]
    least_consistent: Optional[HabitRate]
    completion_rate: float

    @property
    def display_completion_rate(self) -> int:
        return round(self.completion_rate)

    @property
    def total_completed(self) -> int:
        return sum(d.completed for d in self.days)


def completion_rate(completion_days: Iterable[DayLike], day_range: Sequence[date]) -> float:
    """Percentage of ``day_range`` present in the completion set; 0 for an empty range."""

    if not day_range:
        return 0.0
    days = normalize_completion_days(completion_days)
    hits = sum(1 for d in day_range if d in days)
    return hits / len(day_range) * 100


def daily_completed_counts(
    habits: Sequence[Habit],
    completions: Mapping[int, Iterable[DayLike]],
    day_range: Sequence[date],
) -> list[DayCount]:
    """For each day in the window, how many habits were completed."""

    sets = [normalize_completion_days(completions.get(h.id, ())) for h in habits]
    return [DayCount(day=d, completed=sum(1 for s in sets if d in s)) for d in day_range]


def best_day(counts: Sequence[DayCount]) -> Optional[DayCount]:
    """First day holding the maximum count, or ``None`` if nothing was completed."""

    best: Optional[DayCount] = None
    for entry in counts:
        if best is None or entry.completed > best.completed:
            best = entry
    if best is None or best.completed == 0:
        return None
    return best


def compute_period_stats(
    habits: Sequence[Habit],
    completions: Mapping[int, Iterable[DayLike]],
    day_range: Sequence[date],
) -> PeriodStats:
    """Build the analytics summary for ``day_range``.

    Ties for best day go to the earliest day. Ties for most/least consistent
    habit go to the habit that appears first in ``habits``. Every ratio with a
    zero denominator falls back to 0.
    """

    counts = daily_completed_counts(habits, completions, day_range)

    rates: list[HabitRate] = []
    most: Optional[HabitRate] = None
    least: Optional[HabitRate] = None
    for habit in habits:
        days = normalize_completion_days(completions.get(habit.id, ()))
        hits = sum(1 for d in day_range if d in days)
        entry = HabitRate(habit=habit, completed_days=hits, rate=completion_rate(days, day_range))
        rates.append(entry)
        if most is None or entry.rate > most.rate:
            most = entry
        if least is None or entry.rate < least.rate:
            least = entry

    possible = len(habits) * len(day_range)
    actual = sum(c.completed for c in counts)
    overall = (actual / possible * 100) if possible else 0.0

    return PeriodStats(
        days=counts,
        habit_rates=rates,
        best_day=best_day(counts),
        most_consistent=most,
        least_consistent=least,
        completion_rate=overall,
    )


__all__ = [
    "DayCount",
    "HabitRate",
    "PeriodStats",
    "best_day",
    "completion_rate",
    "compute_period_stats",
    "daily_completed_counts",
]
