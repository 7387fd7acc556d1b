"""SQLModel implementation of the monthly badge repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.badge import MonthlyBadge


class SQLModelBadgeRepository:
    """Badge rows are inserted once and never updated."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, month: str, *, user_id: int) -> Optional[MonthlyBadge]:
        with self.session_factory() as session:
            obj = session.get(MonthlyBadge, (user_id, month))
            if obj:
                session.expunge(obj)
            return obj

    def list_badges(self, *, user_id: int) -> list[MonthlyBadge]:
        with self.session_factory() as session:
            statement = (
                select(MonthlyBadge)
                .where(MonthlyBadge.user_id == user_id)
                .order_by(MonthlyBadge.month.desc())  # type: ignore[attr-defined]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def grant(self, month: str, *, user_id: int) -> MonthlyBadge:
        with self.session_factory() as session:
            existing = session.get(MonthlyBadge, (user_id, month))
            if existing is not None:
                session.expunge(existing)
                return existing
            badge = MonthlyBadge(user_id=user_id, month=month)
            session.add(badge)
            session.commit()
            session.refresh(badge)
            session.expunge(badge)
            return badge
