# File: userbase/api/deps.py

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from userbase.core.errors import NotAuthenticated
from userbase.db.session import SessionLocal
from userbase.models.user import User
from userbase.services.avatar_service import AvatarUploader, get_uploader

SESSION_USER_KEY = "user_id"


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a SQLAlchemy session.

    Usage in route functions:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    user_id = request.session.get(SESSION_USER_KEY)
    user = db.get(User, user_id) if user_id is not None else None
    if user_id is not None and user is None:
        # Stale session for a deleted user
        request.session.pop(SESSION_USER_KEY, None)
    # Templates show the signed-in user in the layout
    request.state.current_user = user
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


def get_avatar_uploader() -> AvatarUploader:
    return get_uploader()
