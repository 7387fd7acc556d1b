"""Service module exports."""

from . import (
    analytics,
    auth,
    badges,
    dates,
    export_csv,
    habits,
    reports,
)

__all__ = [
    "analytics",
    "auth",
    "badges",
    "dates",
    "export_csv",
    "habits",
    "reports",
]
