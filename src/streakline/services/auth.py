"""Identity and profile services."""

from __future__ import annotations

import secrets
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Callable, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlmodel import Session, select

from ..logging_config import get_logger
from ..models.user import User

SessionFactory = Callable[[], AbstractContextManager[Session]]

logger = get_logger(__name__)

_hasher = PasswordHasher()
LOCAL_USERNAME = "local"
MAX_PHOTO_BYTES = 2 * 1024 * 1024


def get_user_by_username(username: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by username."""
    username = username.strip()
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
        return user


def create_user(
    *,
    username: str,
    password: str,
    display_name: str = "",
    session_factory: SessionFactory,
) -> User:
    """Create a new user with hashed password."""

    username = username.strip()
    if not username:
        raise ValueError("Username cannot be empty")
    if not password:
        raise ValueError("Password cannot be empty")
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise ValueError("Username already exists")
        user = User(username=username, password_hash=password_hash, display_name=display_name.strip())
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("User created", extra={"user_id": user.id})
    return user


def authenticate(
    *,
    username: str,
    password: str,
    session_factory: SessionFactory,
) -> Optional[User]:
    """Validate credentials and return the user when correct."""

    username = username.strip()
    if not username:
        return None
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            return None
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHash, VerificationError):
            logger.warning("Failed login attempt", extra={"username": username})
            return None

        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def ensure_user(username: str, session_factory: SessionFactory) -> User:
    """Create or return a passwordless profile used by the command line."""

    username = username.strip() or LOCAL_USERNAME
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
            return user
        # Random throwaway secret: CLI profiles cannot be logged into by password.
        user = User(username=username, password_hash=_hasher.hash(secrets.token_hex(32)))
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def ensure_local_user(session_factory: SessionFactory) -> User:
    """Create or return the default local profile."""

    return ensure_user(LOCAL_USERNAME, session_factory)


def update_profile(*, user_id: int, display_name: str, session_factory: SessionFactory) -> User:
    """Change the display name shown on the profile."""

    with session_factory() as session:
        user = session.get(User, user_id)
        if user is None:
            raise ValueError("User not found")
        user.display_name = display_name.strip()
        user.updated_at = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def set_profile_photo(*, user_id: int, blob: Optional[bytes], session_factory: SessionFactory) -> User:
    """Store the profile photo as an opaque blob; ``None`` clears it."""

    if blob is not None and len(blob) > MAX_PHOTO_BYTES:
        raise ValueError(f"Profile photo exceeds {MAX_PHOTO_BYTES} bytes")
    with session_factory() as session:
        user = session.get(User, user_id)
        if user is None:
            raise ValueError("User not found")
        user.photo_blob = blob
        user.updated_at = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def get_profile_photo(*, user_id: int, session_factory: SessionFactory) -> Optional[bytes]:
    with session_factory() as session:
        user = session.get(User, user_id)
        if user is None:
            raise ValueError("User not found")
        return user.photo_blob
