# userbase/web/routes_session.py
"""
Sign in / sign out pages.
"""

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from userbase.api.deps import SESSION_USER_KEY, get_db
from userbase.core.errors import AccountLocked
from userbase.services.auth_service import authenticate_user
from userbase.web.flash import flash
from userbase.web.navigation import Breadcrumb, breadcrumbs
from userbase.web.templating import render

router = APIRouter(tags=["session"])


def _render_login(request: Request, email: str = "", status_code: int = 200):
    return render(
        request,
        "sessions/new.html",
        {
            "title": "Sign in",
            "breadcrumbs": breadcrumbs(Breadcrumb("Sign in")),
            "email": email,
        },
        status_code=status_code,
    )


@router.get("/login", summary="Sign in form")
def login_form(request: Request):
    return _render_login(request)


@router.post("/login", summary="Sign in")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    client_ip = request.client.host if request.client else None
    try:
        user = authenticate_user(db, email=email, password=password, ip=client_ip)
    except AccountLocked as exc:
        flash(request, str(exc), "alert")
        return _render_login(request, email, status_code=status.HTTP_401_UNAUTHORIZED)

    if user is None:
        flash(request, "Invalid email or password.", "alert")
        return _render_login(request, email, status_code=status.HTTP_401_UNAUTHORIZED)

    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    flash(request, "Signed in successfully.")
    return RedirectResponse("/users", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/logout", summary="Sign out")
def logout(request: Request):
    request.session.clear()
    flash(request, "Signed out successfully.")
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
