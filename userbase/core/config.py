# File: userbase/core/config.py

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, AnyHttpUrl, field_validator  # BaseSettings not needed


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class Settings(BaseModel):
    # Basic app info
    app_name: str = "Base"
    PROJECT_NAME: str = "Base"
    VERSION: str = "0.1.0"

    api_v1_prefix: str = "/api/v1"
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes", "on"}
    time_zone: str = os.getenv("TIME_ZONE", "Europe/Berlin")

    # CORS
    backend_cors_origins: List[AnyHttpUrl] = []

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./base.db")

    # Sessions
    secret_key: str = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
    session_cookie: str = os.getenv("SESSION_COOKIE", "base_session")
    session_max_age: int = _get_int("SESSION_MAX_AGE", 14 * 24 * 60 * 60)  # 14 days
    session_https_only: bool = os.getenv("SESSION_HTTPS_ONLY", "false").lower() in {"1", "true", "yes", "on"}

    # Passwords / lockout
    bcrypt_rounds: int = _get_int("BCRYPT_ROUNDS", 12)
    password_min_length: int = _get_int("PASSWORD_MIN_LENGTH", 8)
    lockout_max_attempts: int = _get_int("LOCKOUT_MAX_ATTEMPTS", 5)
    lockout_unlock_minutes: int = _get_int("LOCKOUT_UNLOCK_MINUTES", 60)

    # Avatar storage
    storage_dir: Path = Path(os.getenv("STORAGE_DIR", "storage"))
    avatar_max_bytes: int = _get_int("AVATAR_MAX_BYTES", 5 * 1024 * 1024)
    avatar_extensions: List[str] = ["jpg", "jpeg", "gif", "png"]
    avatar_cache_ttl_seconds: int = _get_int("AVATAR_CACHE_TTL_SECONDS", 24 * 60 * 60)

    # Initial administrator (seeding is skipped unless all three are set)
    admin_name: Optional[str] = os.getenv("ADMIN_NAME") or None
    admin_email: Optional[str] = os.getenv("ADMIN_EMAIL") or None
    admin_password: Optional[str] = os.getenv("ADMIN_PASSWORD") or None

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        return []

    @property
    def uploads_dir(self) -> Path:
        return self.storage_dir / "uploads"


@lru_cache
def get_settings() -> Settings:
    return Settings(backend_cors_origins=os.getenv("BACKEND_CORS_ORIGINS", ""))


settings = get_settings()
