"""Streakline: daily habit tracking with streaks, momentum and monthly badges."""

from __future__ import annotations

from .config import BaseConfig
from .context import AppContext, create_app_context

__version__ = "0.3.0"

__all__ = ["AppContext", "BaseConfig", "create_app_context", "__version__"]
