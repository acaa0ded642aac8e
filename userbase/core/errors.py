# File: userbase/core/errors.py

"""
Application error taxonomy and the FastAPI exception handlers for it.

Requests under the API prefix get JSON bodies; page requests get a
redirect (not signed in) or a rendered error page.
"""

from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from userbase.core.config import settings


class NotAuthenticated(Exception):
    """No signed-in user for a request that requires one."""


class AccessDenied(Exception):
    def __init__(self, action: str, subject: str = "user"):
        super().__init__(f"Not authorized to {action} {subject}.")
        self.action = action
        self.subject = subject


class RecordNotFound(Exception):
    def __init__(self, model: str, record_id):
        super().__init__(f"{model} {record_id} not found.")
        self.model = model
        self.record_id = record_id


class RecordInvalid(Exception):
    """Validation failed; ``errors`` maps field names to messages."""

    def __init__(self, errors: Dict[str, List[str]]):
        super().__init__("Validation failed: " + "; ".join(
            f"{field} {', '.join(msgs)}" for field, msgs in errors.items()
        ))
        self.errors = errors


class AccountLocked(Exception):
    pass


class AvatarError(ValueError):
    pass


def _is_api(request: Request) -> bool:
    return request.url.path.startswith(settings.api_v1_prefix)


def _json_error(request: Request, code: int, error: str, message: str, **extra) -> JSONResponse:
    payload = {
        "ok": False,
        "status": code,
        "error": error,
        "message": message,
        "path": request.url.path,
    }
    payload.update(extra)
    return JSONResponse(payload, status_code=code)


def _error_page(request: Request, code: int, title: str, message: str):
    from userbase.web.templating import render

    return render(
        request,
        "errors/error.html",
        {"title": title, "message": message, "breadcrumbs": []},
        status_code=code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotAuthenticated)
    async def handle_not_authenticated(request: Request, exc: NotAuthenticated):
        if _is_api(request):
            return _json_error(request, status.HTTP_401_UNAUTHORIZED, "NotAuthenticated", "Not authenticated")

        from userbase.web.flash import flash

        flash(request, "You need to sign in or sign up before continuing.", "alert")
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(AccessDenied)
    async def handle_access_denied(request: Request, exc: AccessDenied):
        logger.warning(f"Access denied: {request.method} {request.url.path} ({exc})")
        if _is_api(request):
            return _json_error(request, status.HTTP_403_FORBIDDEN, "AccessDenied", str(exc))
        return _error_page(request, status.HTTP_403_FORBIDDEN, "Forbidden", str(exc))

    @app.exception_handler(RecordNotFound)
    async def handle_not_found(request: Request, exc: RecordNotFound):
        if _is_api(request):
            return _json_error(request, status.HTTP_404_NOT_FOUND, "RecordNotFound", str(exc))
        return _error_page(request, status.HTTP_404_NOT_FOUND, "Not Found", str(exc))

    @app.exception_handler(RecordInvalid)
    async def handle_invalid(request: Request, exc: RecordInvalid):
        return _json_error(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "RecordInvalid",
            str(exc),
            errors=exc.errors,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        if _is_api(request):
            return _json_error(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "InternalServerError",
                "An unexpected error occurred.",
            )
        return _error_page(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error",
            "An unexpected error occurred.",
        )
