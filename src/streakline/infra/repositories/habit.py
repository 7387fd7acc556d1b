"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.habit import Habit, HabitCompletion


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]:
        """Retrieve the newest habit with an exact name."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.name == name, Habit.user_id == user_id)
                .order_by(Habit.id.desc())  # type: ignore[union-attr]
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Habit]:
        """List habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at.desc(), Habit.id.desc())  # type: ignore[attr-defined,union-attr]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit by ID. Completion rows are left in place."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit:
                session.delete(habit)
                session.commit()

    # Completion operations
    def completion_days(self, habit_id: int, *, user_id: int) -> set[str]:
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion.day)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
            )
            return set(session.exec(statement).all())

    def completion_days_between(
        self, habit_id: int, start_key: str, end_key: str, *, user_id: int
    ) -> set[str]:
        """Completion keys in ``[start_key, end_key]``; day keys sort lexically."""
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion.day)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.day >= start_key)
                .where(HabitCompletion.day <= end_key)
            )
            return set(session.exec(statement).all())

    def completion_map(self, habit_ids: Iterable[int], *, user_id: int) -> dict[int, set[str]]:
        ids = list(habit_ids)
        result: dict[int, set[str]] = {hid: set() for hid in ids}
        if not ids:
            return result
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion.habit_id, HabitCompletion.day)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id.in_(ids))  # type: ignore[attr-defined]
            )
            for habit_id, day in session.exec(statement).all():
                result[habit_id].add(day)
        return result

    def add_completion(self, habit_id: int, day_key: str, *, user_id: int) -> None:
        with self.session_factory() as session:
            existing = session.get(HabitCompletion, (habit_id, day_key))
            if existing is None:
                session.add(HabitCompletion(habit_id=habit_id, day=day_key, user_id=user_id))
                session.commit()

    def remove_completion(self, habit_id: int, day_key: str, *, user_id: int) -> None:
        with self.session_factory() as session:
            entry = session.exec(
                select(HabitCompletion)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.day == day_key)
            ).first()
            if entry:
                session.delete(entry)
                session.commit()

    def list_completions(self, *, user_id: int) -> list[HabitCompletion]:
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion)
                .where(HabitCompletion.user_id == user_id)
                .order_by(HabitCompletion.habit_id, HabitCompletion.day)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
