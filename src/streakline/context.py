"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelBadgeRepository, SQLModelHabitRepository
from .models.user import User
from .services import auth
from .services.habits import HabitTracker


@dataclass
class AppContext:
    """Configuration, storage and the signed-in user, passed explicitly to callers."""

    config: BaseConfig
    engine: Any
    session_factory: Callable[[], Session]

    habit_repo: SQLModelHabitRepository
    badge_repo: SQLModelBadgeRepository

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("User is not authenticated")
        return self.current_user.id

    def tracker(self) -> HabitTracker:
        return HabitTracker(self.habit_repo, user_id=self.require_user_id())

    def close(self) -> None:
        self.engine.dispose()


def create_app_context(config: Optional[BaseConfig] = None, *, username: Optional[str] = None) -> AppContext:
    """Create storage, repositories and resolve the active profile."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)
    user = auth.ensure_user(username or config.USERNAME, session_factory)

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_repo=SQLModelHabitRepository(session_factory),
        badge_repo=SQLModelBadgeRepository(session_factory),
        current_user=user,
    )
