# File: userbase/services/permissions.py

"""
Authorization rules.

Admins may manage every user. Everybody else may list and view users
and edit their own record. Nobody deletes their own account.
"""

from typing import Optional

from userbase.core.errors import AccessDenied
from userbase.models.user import User

READ_ACTIONS = {"index", "show"}


def can(user: Optional[User], action: str, target: Optional[User] = None) -> bool:
    if user is None:
        return False

    if action == "destroy" and target is not None and target.id == user.id:
        return False

    if user.is_admin:
        return True

    if action in READ_ACTIONS:
        return True

    if action == "update":
        return target is not None and target.id == user.id

    return False


def authorize(user: Optional[User], action: str, target: Optional[User] = None) -> None:
    if not can(user, action, target):
        raise AccessDenied(action, f"user {target.id}" if target is not None else "users")
