# userbase/api/v1/routes_users.py
"""
JSON endpoints for the user listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from userbase.api.deps import get_current_user, get_db
from userbase.models.user import User
from userbase.schemas.user import AnnotatedUserRead, UserFilter, UserListResponse, UserRead
from userbase.services.permissions import authorize
from userbase.services.role_annotation import annotate_roles
from userbase.services.user_query import list_users
from userbase.services.user_service import get_user

router = APIRouter(tags=["users"])


@router.get("", response_model=UserListResponse, summary="List users with role occurrence markers")
def list_users_endpoint(
    q_name_cont: Optional[str] = Query(None),
    q_email_cont: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    GET /api/v1/users?q_name_cont=anne

    Returns:
        {"items": [...], "total": n}, each item carrying ``role_occurrence``
    """
    authorize(current_user, "index")

    filters = UserFilter(name_cont=q_name_cont, email_cont=q_email_cont)
    items = [
        AnnotatedUserRead(
            **UserRead.model_validate(user).model_dump(exclude={"avatar_url"}),
            role_occurrence=occurrence,
        )
        for user, occurrence in annotate_roles(list_users(db, filters))
    ]
    return UserListResponse(items=items, total=len(items))


@router.get("/{user_id}", response_model=UserRead, summary="Get a single user")
def get_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = get_user(db, user_id)
    authorize(current_user, "show", user)
    return user
