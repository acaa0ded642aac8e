# File: userbase/web/navigation.py

"""
Page chrome: titles, breadcrumbs and the navigation menu.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from userbase.core.config import settings


@dataclass
class Breadcrumb:
    label: str
    url: Optional[str] = None


@dataclass
class NavItem:
    key: str
    label: str
    url: str
    children: List["NavItem"] = field(default_factory=list)


NAVIGATION = [
    NavItem(
        key="users",
        label="Users",
        url="/users",
        children=[
            NavItem(key="users.index", label="List of Users", url="/users"),
            NavItem(key="users.new", label="Create User", url="/users/new"),
        ],
    ),
]


def page_title(headline: str) -> str:
    return f"{headline} - {settings.app_name}"


def breadcrumbs(*trail: Breadcrumb) -> List[Breadcrumb]:
    """The application root always comes first."""
    return [Breadcrumb(settings.app_name, "/"), *trail]


def active_navigation(active_key: Optional[str]) -> List[str]:
    """Keys of the item for ``active_key`` and all its parents."""
    if not active_key:
        return []

    def walk(items, parents):
        for item in items:
            if item.key == active_key:
                return parents + [item.key]
            found = walk(item.children, parents + [item.key])
            if found:
                return found
        return None

    return walk(NAVIGATION, []) or []
