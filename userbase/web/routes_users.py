# userbase/web/routes_users.py
"""
User pages: listing with filter, create, show, edit, delete.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from userbase.api.deps import get_avatar_uploader, get_current_user, get_db
from userbase.core.errors import RecordInvalid
from userbase.models.user import NAME_MAX_LENGTH, User
from userbase.schemas.user import UserFilter
from userbase.services.avatar_service import AvatarUploader, PendingAvatar
from userbase.services.permissions import authorize, can
from userbase.services.role_annotation import annotate_roles
from userbase.services.user_query import list_users
from userbase.services.user_service import create_user, delete_user, get_user, update_user
from userbase.web.flash import flash
from userbase.web.navigation import Breadcrumb, breadcrumbs
from userbase.web.templating import render

router = APIRouter(tags=["pages"])

USER_FIELDS = ("name", "email", "about", "password", "password_confirmation")
PASSWORD_FIELDS = ("password", "password_confirmation")
CHECKED = {"1", "true", "on", "yes"}


async def _read_user_form(request: Request, uploader: AvatarUploader):
    form = await request.form()
    data = {key: form.get(key) for key in USER_FIELDS}

    filename = content = None
    upload = form.get("avatar")
    if isinstance(upload, UploadFile) and upload.filename:
        filename = upload.filename
        content = await upload.read()

    avatar = PendingAvatar.from_form(
        uploader,
        filename=filename,
        content=content,
        cache_name=form.get("avatar_cache") or None,
        remove=(form.get("remove_avatar") or "").lower() in CHECKED,
    )
    return data, avatar


def _form_values(data: dict) -> dict:
    # Passwords are never echoed back into the form
    return {k: v for k, v in data.items() if k not in PASSWORD_FIELDS and v is not None}


def _users_crumb() -> Breadcrumb:
    return Breadcrumb("Users", "/users")


@router.get("/", include_in_schema=False)
def root():
    return RedirectResponse("/users", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/users", summary="List of users")
def users_index(
    request: Request,
    q_name_cont: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "index")

    filters = UserFilter(name_cont=q_name_cont)
    rows = annotate_roles(list_users(db, filters))

    return render(
        request,
        "users/index.html",
        {
            "title": "Users",
            "breadcrumbs": breadcrumbs(Breadcrumb("Users")),
            "rows": rows,
            "filters": filters,
            "can": can,
        },
        active="users.index",
    )


@router.get("/users/new", summary="New user form")
def users_new(
    request: Request,
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "create")
    return _render_new(request)


def _render_new(request: Request, form=None, errors=None, avatar: Optional[PendingAvatar] = None, status_code=200):
    return render(
        request,
        "users/new.html",
        {
            "title": "Create User",
            "breadcrumbs": breadcrumbs(_users_crumb(), Breadcrumb("Create")),
            "form": form or {},
            "errors": errors or {},
            "avatar": avatar,
            "name_max_length": NAME_MAX_LENGTH,
        },
        status_code=status_code,
        active="users.new",
    )


@router.post("/users", summary="Create user")
async def users_create(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: AvatarUploader = Depends(get_avatar_uploader),
):
    authorize(current_user, "create")
    data, avatar = await _read_user_form(request, uploader)

    try:
        user = create_user(db, data, avatar)
    except RecordInvalid as exc:
        flash(request, "User could not be created.", "alert")
        return _render_new(
            request,
            form=_form_values(data),
            errors=exc.errors,
            avatar=avatar,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    flash(request, "User was successfully created.")
    return RedirectResponse(f"/users/{user.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/users/{user_id}", summary="Show user")
def users_show(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = get_user(db, user_id)
    authorize(current_user, "show", user)
    return render(
        request,
        "users/show.html",
        {
            "title": user.name,
            "breadcrumbs": breadcrumbs(_users_crumb(), Breadcrumb(user.name)),
            "user": user,
            "can": can,
        },
        active="users",
    )


def _render_edit(request: Request, user: User, form=None, errors=None, avatar=None, status_code=200):
    return render(
        request,
        "users/edit.html",
        {
            "title": "Edit User",
            "breadcrumbs": breadcrumbs(
                _users_crumb(),
                Breadcrumb(user.name, f"/users/{user.id}"),
                Breadcrumb("Edit"),
            ),
            "user": user,
            "form": form if form is not None else {"name": user.name, "email": user.email, "about": user.about},
            "errors": errors or {},
            "avatar": avatar,
            "name_max_length": NAME_MAX_LENGTH,
        },
        status_code=status_code,
        active="users",
    )


@router.get("/users/{user_id}/edit", summary="Edit user form")
def users_edit(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = get_user(db, user_id)
    authorize(current_user, "update", user)
    return _render_edit(request, user)


@router.post("/users/{user_id}", summary="Update user")
async def users_update(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: AvatarUploader = Depends(get_avatar_uploader),
):
    user = get_user(db, user_id)
    authorize(current_user, "update", user)
    data, avatar = await _read_user_form(request, uploader)

    try:
        update_user(db, user, data, avatar)
    except RecordInvalid as exc:
        db.rollback()
        flash(request, "User could not be updated.", "alert")
        return _render_edit(
            request,
            user,
            form=_form_values(data),
            errors=exc.errors,
            avatar=avatar,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    flash(request, "User was successfully updated.")
    return RedirectResponse(f"/users/{user.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/users/{user_id}/delete", summary="Delete user")
def users_delete(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: AvatarUploader = Depends(get_avatar_uploader),
):
    user = get_user(db, user_id)
    authorize(current_user, "destroy", user)
    delete_user(db, user, uploader)
    flash(request, "User was successfully destroyed.")
    return RedirectResponse("/users", status_code=status.HTTP_303_SEE_OTHER)
