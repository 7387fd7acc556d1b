"""Monthly perfect-completion badges."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from sqlmodel import Field, SQLModel


class MonthlyBadge(SQLModel, table=True):
    """Granted badge for one ``yyyy-MM`` month. Rows are never updated or removed."""

    __tablename__: ClassVar[str] = "monthly_badge"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    month: str = Field(primary_key=True, max_length=7)
    earned_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
