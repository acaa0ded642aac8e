# File: userbase/core/logging.py

"""
Logging setup for the Base portal.

Uses loguru's global ``logger``. ``configure_logging`` swaps the default
stderr sink for one at the configured level, and ``RequestLoggingMiddleware``
writes one line per request and per response.
"""

import sys
import time

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from userbase.core.config import settings


def configure_logging(level: str | None = None) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}",
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log all incoming HTTP requests and their responses.

    Static asset requests are logged at DEBUG so page loads don't drown
    the log in stylesheet/script noise.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        level = "DEBUG" if request.url.path.startswith("/static") else "INFO"

        client_host = request.client.host if request.client else "unknown"
        logger.log(level, f"→ REQUEST: {request.method} {request.url.path} | Client: {client_host}")

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.log(
            level,
            f"← RESPONSE: {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {duration_ms:.2f}ms",
        )
        return response
