"""Monthly badge repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.badge import MonthlyBadge


class BadgeRepository(Protocol):
    """Insert-once storage for monthly badges."""

    def get(self, month: str, *, user_id: int) -> Optional[MonthlyBadge]:
        """Return the badge for ``month`` if one was granted."""
        ...

    def list_badges(self, *, user_id: int) -> list[MonthlyBadge]:
        """All badges, newest month first."""
        ...

    def grant(self, month: str, *, user_id: int) -> MonthlyBadge:
        """Persist a badge; an existing record for ``month`` is returned unchanged."""
        ...
