# File: userbase/core/security.py

"""
Password hashing helpers.

Passwords are hashed with bcrypt; the plaintext never reaches the
database. The cost factor comes from ``settings.bcrypt_rounds`` so the
test suite can run with a cheap one.
"""

import bcrypt

from userbase.core.config import settings


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """
    Check ``password`` against a stored bcrypt hash.

    A missing or malformed hash never verifies.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
