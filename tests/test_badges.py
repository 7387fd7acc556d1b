"""Tests for the monthly perfect-completion badge rule and service."""

from __future__ import annotations

from datetime import date

import pytest

from streakline.infra.repositories import SQLModelBadgeRepository, SQLModelHabitRepository
from streakline.models.habit import Habit
from streakline.services import badges
from streakline.services.dates import InvalidDateKey, days_in_month, format_day_key


def _full_month(month: str) -> set[str]:
    return {format_day_key(d) for d in days_in_month(month)}


def _habits(*names: str) -> list[Habit]:
    return [Habit(id=i, user_id=1, name=n) for i, n in enumerate(names, start=1)]


class TestEvaluateMonthlyBadge:
    def test_empty_habit_list_is_never_granted(self):
        decision = badges.evaluate_monthly_badge("2024-02", [], {}, already_granted=False)
        assert decision.granted is False
        assert decision.reason == badges.REASON_NO_HABITS

    def test_perfect_month_is_granted(self):
        habits = _habits("A", "B")
        completions = {1: _full_month("2024-02"), 2: _full_month("2024-02") | {"2024-03-01"}}

        decision = badges.evaluate_monthly_badge("2024-02", habits, completions, already_granted=False)

        assert decision.granted is True
        assert decision.month == "2024-02"

    @pytest.mark.parametrize("missing", ["2024-02-01", "2024-02-15", "2024-02-29"])
    def test_removing_one_day_from_one_habit_flips_result(self, missing):
        habits = _habits("A", "B")
        completions = {1: _full_month("2024-02"), 2: _full_month("2024-02") - {missing}}

        decision = badges.evaluate_monthly_badge("2024-02", habits, completions, already_granted=False)

        assert decision.granted is False
        assert decision.reason == badges.REASON_INCOMPLETE
        assert decision.missing_habit_id == 2
        assert format_day_key(decision.missing_day) == missing

    def test_habit_without_any_completions_blocks_badge(self):
        decision = badges.evaluate_monthly_badge(
            "2024-04", _habits("A", "B"), {1: _full_month("2024-04")}, already_granted=False
        )
        assert decision.granted is False

    def test_already_granted_short_circuits(self):
        habits = _habits("A")
        decision = badges.evaluate_monthly_badge(
            "2024-02", habits, {1: _full_month("2024-02")}, already_granted=True
        )
        assert decision.granted is False
        assert decision.reason == badges.REASON_ALREADY_GRANTED

    def test_malformed_completion_keys_count_as_missed(self):
        keys = _full_month("2023-02") - {"2023-02-10"} | {"2023-02-30"}
        decision = badges.evaluate_monthly_badge("2023-02", _habits("A"), {1: keys}, already_granted=False)
        assert decision.granted is False

    def test_invalid_month_key_raises(self):
        with pytest.raises(InvalidDateKey):
            badges.evaluate_monthly_badge("2024-13", _habits("A"), {}, already_granted=False)


class TestCheckAndGrant:
    def _repos(self, session_factory):
        return SQLModelBadgeRepository(session_factory), SQLModelHabitRepository(session_factory)

    def test_grants_previous_month_once(self, session_factory, user, habit_factory, mark_done):
        habit = habit_factory(name="Read")
        mark_done(habit, *days_in_month("2024-02"))
        badge_repo, habit_repo = self._repos(session_factory)

        first = badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 3, 5)
        )
        stored = badge_repo.get("2024-02", user_id=user.id)
        second = badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 3, 20)
        )

        assert first.granted is True
        assert second.granted is False
        assert second.reason == badges.REASON_ALREADY_GRANTED
        assert [b.month for b in badge_repo.list_badges(user_id=user.id)] == ["2024-02"]
        assert badge_repo.get("2024-02", user_id=user.id).earned_at == stored.earned_at

    def test_badge_survives_later_history_edits(self, session_factory, user, habit_factory, mark_done):
        habit = habit_factory(name="Read")
        mark_done(habit, *days_in_month("2024-02"))
        badge_repo, habit_repo = self._repos(session_factory)
        badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 3, 1)
        )

        habit_repo.remove_completion(habit.id, "2024-02-10", user_id=user.id)
        badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 3, 2)
        )

        assert [b.month for b in badge_repo.list_badges(user_id=user.id)] == ["2024-02"]

    def test_in_progress_month_is_never_evaluated(self, session_factory, user, habit_factory, mark_done):
        habit = habit_factory(name="Read")
        mark_done(habit, *days_in_month("2024-03"))
        badge_repo, habit_repo = self._repos(session_factory)

        decision = badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 3, 31)
        )

        assert decision.month == "2024-02"
        assert decision.granted is False
        assert badge_repo.list_badges(user_id=user.id) == []

    def test_incomplete_month_not_granted(self, session_factory, user, habit_factory, mark_done):
        read = habit_factory(name="Read")
        run = habit_factory(name="Run")
        mark_done(read, *days_in_month("2024-01"))
        mark_done(run, *[d for d in days_in_month("2024-01") if d.day != 15])
        badge_repo, habit_repo = self._repos(session_factory)

        decision = badges.check_and_grant_monthly_badge(
            badge_repo=badge_repo, habit_repo=habit_repo, user_id=user.id, today=date(2024, 2, 1)
        )

        assert decision.granted is False
        assert decision.missing_habit_id == run.id
        assert badge_repo.get("2024-01", user_id=user.id) is None

    def test_list_badges_newest_first(self, session_factory, user):
        badge_repo, _ = self._repos(session_factory)
        for month in ("2024-01", "2024-03", "2023-12"):
            badge_repo.grant(month, user_id=user.id)

        listed = badges.list_badges(badge_repo=badge_repo, user_id=user.id)

        assert [b.month for b in listed] == ["2024-03", "2024-01", "2023-12"]
