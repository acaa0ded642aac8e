# File: userbase/services/user_query.py

"""
User listing queries.

``list_users`` returns the users visible on the listing page, optionally
narrowed by a ``UserFilter``. Results always come back in primary-key
order, so the same filter on an unchanged table yields the same list.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from userbase.models.user import User
from userbase.schemas.user import UserFilter


def _contains(column, value: str):
    # autoescape makes "%" and "_" in the user's input match literally
    return column.icontains(value, autoescape=True)


def list_users(db: Session, filters: Optional[UserFilter] = None) -> List[User]:
    query = db.query(User)

    if filters is not None:
        if filters.name_cont is not None:
            query = query.filter(_contains(User.name, filters.name_cont))
        if filters.email_cont is not None:
            query = query.filter(_contains(User.email, filters.email_cont))

    return query.order_by(User.id).all()
