# userbase/main.py

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.sessions import SessionMiddleware

from userbase.core.config import settings
from userbase.core.errors import register_exception_handlers
from userbase.core.logging import RequestLoggingMiddleware, configure_logging
from userbase.api.v1.api import api_router
from userbase.db.init_db import init_db
from userbase.services.avatar_service import get_uploader
from userbase.web.routes_session import router as session_router
from userbase.web.routes_users import router as users_router

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.VERSION}")
    init_db()
    get_uploader().cleanup_cache()
    yield
    logger.info(f"Shutting down {settings.PROJECT_NAME}")


def create_application() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # ---------- SESSIONS ----------
    if settings.secret_key == "CHANGE_ME_IN_PRODUCTION":
        logger.warning("SECRET_KEY not set - using the development default")

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # ---------- CORS ----------
    if settings.backend_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin).rstrip("/") for origin in settings.backend_cors_origins],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # ---------- STATIC FILES ----------
    # Stylesheet and the textarea fullscreenizer script
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    # Stored avatars under /uploads/user/avatar/<id>/*
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(settings.uploads_dir)), name="uploads")

    # ---------- ERRORS ----------
    register_exception_handlers(app)

    # ---------- ROUTERS ----------
    @app.get("/healthz", tags=["health"])
    def healthz():
        return {"status": "ok", "version": settings.VERSION}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    app.include_router(session_router)
    app.include_router(users_router)

    return app


app = create_application()
