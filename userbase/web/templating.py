# File: userbase/web/templating.py

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from fastapi import Request
from fastapi.templating import Jinja2Templates

from userbase.core.config import settings
from userbase.web.flash import pop_flashes
from userbase.web.navigation import NAVIGATION, active_navigation, page_title

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def localtime(value: Optional[datetime], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Format a stored timestamp in the configured time zone (naive means UTC)."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(settings.time_zone)).strftime(fmt)


templates.env.filters["localtime"] = localtime


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    *,
    status_code: int = 200,
    active: Optional[str] = None,
):
    """
    Render a page with the shared layout context (flashes, navigation,
    signed-in user, title).
    """
    context = dict(context or {})
    headline = context.get("title", settings.app_name)
    context.setdefault("page_title", page_title(headline))
    context.setdefault("breadcrumbs", [])
    context.update(
        app_name=settings.app_name,
        current_user=getattr(request.state, "current_user", None),
        flashes=pop_flashes(request),
        navigation=NAVIGATION,
        active_navigation=active_navigation(active),
    )
    return templates.TemplateResponse(request, name, context, status_code=status_code)
