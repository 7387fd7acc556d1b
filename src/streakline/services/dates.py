"""Calendar day and month keys.

Two string formats cross every boundary of the application: day keys
(``yyyy-MM-dd``) and month keys (``yyyy-MM``). Strict parsers raise
:class:`InvalidDateKey`; :func:`normalize_completion_days` is the lenient
entry point used by the analytics folds, which drops malformed keys and logs
each one instead of aborting the whole computation.
"""

from __future__ import annotations

import re
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterable, Union

from ..logging_config import get_logger

logger = get_logger(__name__)

DayLike = Union[str, date]

# date.fromisoformat accepts extended forms (e.g. "20240101") on newer
# interpreters, so the shape is checked first to keep round-trips exact.
_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")

WINDOW_MONTH = "month"
WINDOW_30_DAYS = "30days"
WINDOWS = (WINDOW_MONTH, WINDOW_30_DAYS)


class InvalidDateKey(ValueError):
    """Raised when a day or month key does not parse to a real calendar value."""

    def __init__(self, key: object, expected: str) -> None:
        super().__init__(f"Invalid {expected} key: {key!r}")
        self.key = key
        self.expected = expected


def parse_day_key(key: str) -> date:
    """Parse a ``yyyy-MM-dd`` key into a date."""

    if not isinstance(key, str) or not _DAY_KEY_RE.match(key):
        raise InvalidDateKey(key, "day")
    try:
        return date.fromisoformat(key)
    except ValueError as exc:
        raise InvalidDateKey(key, "day") from exc


def format_day_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Parse a ``yyyy-MM`` key into ``(year, month)``."""

    match = _MONTH_KEY_RE.match(key) if isinstance(key, str) else None
    if match is None:
        raise InvalidDateKey(key, "month")
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        raise InvalidDateKey(key, "month")
    return year, month


def format_month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_key_for(day: date) -> str:
    """Return the month key containing ``day``."""
    return format_month_key(day.year, day.month)


def previous_month_key(today: date) -> str:
    """Month key of the last completed calendar month relative to ``today``."""

    last_of_previous = today.replace(day=1) - timedelta(days=1)
    return month_key_for(last_of_previous)


def days_in_month(month_key: str) -> list[date]:
    """Every calendar day of ``month_key`` in chronological order."""

    year, month = parse_month_key(month_key)
    _, last_day = monthrange(year, month)
    return [date(year, month, d) for d in range(1, last_day + 1)]


def day_range(start: date, end: date) -> list[date]:
    """Inclusive list of days from ``start`` to ``end``; empty if ``end < start``."""

    span = (end - start).days
    return [start + timedelta(days=offset) for offset in range(span + 1)]


def window_days(kind: str, today: date) -> list[date]:
    """Resolve a named analytics window ending on ``today``.

    ``"month"`` covers the current calendar month to date; ``"30days"`` covers
    ``today - 30`` through ``today`` inclusive.
    """

    if kind == WINDOW_MONTH:
        return day_range(today.replace(day=1), today)
    if kind == WINDOW_30_DAYS:
        return day_range(today - timedelta(days=30), today)
    raise ValueError(f"Unknown window: {kind!r} (expected one of {', '.join(WINDOWS)})")


def normalize_completion_days(keys: Iterable[DayLike]) -> set[date]:
    """Convert completion keys into a set of dates.

    ``date`` values pass through unchanged. Strings that fail to parse are
    excluded and treated as "not completed" on any day; each one is logged at
    WARNING so the data-quality problem stays visible.
    """

    days: set[date] = set()
    for key in keys:
        if isinstance(key, datetime):
            days.add(key.date())
            continue
        if isinstance(key, date):
            days.add(key)
            continue
        try:
            days.add(parse_day_key(key))
        except InvalidDateKey:
            logger.warning("Skipping malformed completion key", extra={"key": key})
    return days


__all__ = [
    "DayLike",
    "InvalidDateKey",
    "WINDOWS",
    "WINDOW_30_DAYS",
    "WINDOW_MONTH",
    "day_range",
    "days_in_month",
    "format_day_key",
    "format_month_key",
    "month_key_for",
    "normalize_completion_days",
    "parse_day_key",
    "parse_month_key",
    "previous_month_key",
    "window_days",
]
