"""Monthly perfect-completion badges.

A badge for month M is earned when every habit on the list was completed on
every day of M. The rule is all-or-nothing across habits and is only ever
evaluated for the last fully completed month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.badge import BadgeRepository
from ..domain.repositories.habit import HabitRepository
from ..logging_config import get_logger
from ..models.badge import MonthlyBadge
from ..models.habit import Habit
from .dates import DayLike, days_in_month, format_day_key, normalize_completion_days, previous_month_key
from .habits import PersistenceError

logger = get_logger(__name__)

REASON_ALREADY_GRANTED = "already_granted"
REASON_NO_HABITS = "no_habits"
REASON_INCOMPLETE = "incomplete"
REASON_PERFECT = "perfect_month"


@dataclass(frozen=True)
class GrantDecision:
    """Outcome of a badge evaluation for ``month``."""

    month: str
    granted: bool
    reason: str
    # First habit found missing a day, when the month was incomplete.
    missing_habit_id: Optional[int] = None
    missing_day: Optional[date] = None


def evaluate_monthly_badge(
    prior_month: str,
    habits: Sequence[Habit],
    completions: Mapping[int, Iterable[DayLike]],
    already_granted: bool,
) -> GrantDecision:
    """Decide whether ``prior_month`` earns a badge.

    ``prior_month`` must be a valid ``yyyy-MM`` key; an invalid one raises
    :class:`~streakline.services.dates.InvalidDateKey`. Completion keys that do
    not parse are ignored (counted as missed days).
    """

    month_days = days_in_month(prior_month)

    if already_granted:
        return GrantDecision(month=prior_month, granted=False, reason=REASON_ALREADY_GRANTED)
    if not habits:
        return GrantDecision(month=prior_month, granted=False, reason=REASON_NO_HABITS)

    for habit in habits:
        done = normalize_completion_days(completions.get(habit.id, ()))
        for day in month_days:
            if day not in done:
                return GrantDecision(
                    month=prior_month,
                    granted=False,
                    reason=REASON_INCOMPLETE,
                    missing_habit_id=habit.id,
                    missing_day=day,
                )

    return GrantDecision(month=prior_month, granted=True, reason=REASON_PERFECT)


def check_and_grant_monthly_badge(
    *,
    badge_repo: BadgeRepository,
    habit_repo: HabitRepository,
    user_id: int,
    today: date,
) -> GrantDecision:
    """Evaluate the month before ``today`` and persist a grant at most once."""

    month = previous_month_key(today)
    month_days = days_in_month(month)
    start_key, end_key = format_day_key(month_days[0]), format_day_key(month_days[-1])

    try:
        already = badge_repo.get(month, user_id=user_id) is not None
        if already:
            decision = evaluate_monthly_badge(month, [], {}, already_granted=True)
        else:
            habits = habit_repo.list_all(user_id=user_id)
            completions = {
                habit.id: habit_repo.completion_days_between(
                    habit.id, start_key, end_key, user_id=user_id
                )
                for habit in habits
            }
            decision = evaluate_monthly_badge(month, habits, completions, already_granted=False)
        if decision.granted:
            badge_repo.grant(month, user_id=user_id)
    except SQLAlchemyError as exc:
        logger.error("Badge check failed", extra={"month": month, "user_id": user_id}, exc_info=True)
        raise PersistenceError(f"Could not evaluate badge for {month}") from exc

    if decision.granted:
        logger.info("Monthly badge granted", extra={"month": month, "user_id": user_id})
    else:
        logger.debug(
            "Monthly badge not granted",
            extra={"month": month, "user_id": user_id, "reason": decision.reason},
        )
    return decision


def list_badges(*, badge_repo: BadgeRepository, user_id: int) -> list[MonthlyBadge]:
    """Badges for display, newest month first."""

    return sorted(badge_repo.list_badges(user_id=user_id), key=lambda b: b.month, reverse=True)


__all__ = [
    "GrantDecision",
    "REASON_ALREADY_GRANTED",
    "REASON_INCOMPLETE",
    "REASON_NO_HABITS",
    "REASON_PERFECT",
    "check_and_grant_monthly_badge",
    "evaluate_monthly_badge",
    "list_badges",
]
