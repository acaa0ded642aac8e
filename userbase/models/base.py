# File: userbase/models/base.py

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Actual models (User, Role) inherit from this.
    """
    pass
