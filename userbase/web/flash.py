# File: userbase/web/flash.py

"""
Flash messages kept in the signed session cookie until the next render.

Categories follow the page styles: ``notice`` for success, ``alert`` for
failures.
"""

from typing import List, Tuple

from fastapi import Request

FLASH_KEY = "_flashes"


def flash(request: Request, message: str, category: str = "notice") -> None:
    flashes = list(request.session.get(FLASH_KEY, []))
    flashes.append([category, message])
    request.session[FLASH_KEY] = flashes


def pop_flashes(request: Request) -> List[Tuple[str, str]]:
    # The last-resort 500 handler runs outside the session middleware
    if "session" not in request.scope:
        return []
    return [tuple(item) for item in request.session.pop(FLASH_KEY, [])]
