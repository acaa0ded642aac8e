# File: userbase/services/auth_service.py

"""
Authentication service.

This contains:
  - User lookup by email
  - Password verification
  - Sign-in tracking (counters, timestamps, IPs)
  - Lockout after too many failed attempts
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from userbase.core.config import settings
from userbase.core.errors import AccountLocked
from userbase.core.security import verify_password
from userbase.models.user import User


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(func.lower(User.email) == email.strip().lower())
        .first()
    )


def is_locked(user: User, now: Optional[datetime] = None) -> bool:
    if user.locked_at is None:
        return False
    now = now or _now()
    unlock_at = _as_aware(user.locked_at) + timedelta(minutes=settings.lockout_unlock_minutes)
    return now < unlock_at


def unlock(user: User) -> None:
    user.locked_at = None
    user.failed_attempts = 0


def record_sign_in(user: User, ip: Optional[str], now: Optional[datetime] = None) -> None:
    now = now or _now()
    user.last_sign_in_at = user.current_sign_in_at or now
    user.last_sign_in_ip = user.current_sign_in_ip or ip
    user.current_sign_in_at = now
    user.current_sign_in_ip = ip
    user.sign_in_count = (user.sign_in_count or 0) + 1
    user.failed_attempts = 0


def record_failed_attempt(user: User, now: Optional[datetime] = None) -> None:
    user.failed_attempts = (user.failed_attempts or 0) + 1
    if user.failed_attempts >= settings.lockout_max_attempts and user.locked_at is None:
        user.locked_at = now or _now()
        logger.warning(f"Locked user {user.id} after {user.failed_attempts} failed sign-in attempts")


def authenticate_user(
    db: Session,
    *,
    email: str,
    password: str,
    ip: Optional[str] = None,
) -> Optional[User]:
    """
    Authenticate a user by email and password.

    Returns the user on success and None on bad credentials. Raises
    ``AccountLocked`` while the account is locked; an expired lock is
    lifted before the password is checked.
    """
    user = get_user_by_email(db, email or "")
    if user is None:
        logger.info("Sign-in failed: unknown email")
        return None

    now = _now()
    if user.locked_at is not None:
        if is_locked(user, now):
            raise AccountLocked("Your account is locked.")
        unlock(user)

    if not verify_password(password or "", user.encrypted_password):
        record_failed_attempt(user, now)
        db.commit()
        logger.info(f"Sign-in failed for user {user.id} (attempt {user.failed_attempts})")
        if user.locked_at is not None:
            raise AccountLocked("Your account is locked.")
        return None

    record_sign_in(user, ip, now)
    db.commit()
    logger.info(f"User {user.id} signed in (count={user.sign_in_count})")
    return user
