# File: userbase/services/avatar_service.py

"""
Avatar upload handling.

Uploads go through two stages:

  1. ``cache``: the file is validated and written to
     ``<uploads>/tmp/<token>/<filename>``. The returned cache name
     ("<token>/<filename>") travels with the form, so an avatar survives
     a submission that fails validation.
  2. ``store``: once the user row exists, the cached file is moved to
     ``<uploads>/user/avatar/<user_id>/<filename>`` and the cache
     directory is released.

Cache directories nobody claimed are removed by ``cleanup_cache``.
"""

import re
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional

import imageio.v3 as iio
from loguru import logger

from userbase.core.config import settings
from userbase.core.errors import AvatarError

CACHE_SUBDIR = "tmp"
STORE_SUBDIR = Path("user") / "avatar"

_CACHE_NAME_RE = re.compile(r"^[0-9a-f]{32}/[A-Za-z0-9._-]+$")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(filename: str) -> str:
    """Keep the basename and replace anything unusual with underscores."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS_RE.sub("_", name)
    if name in ("", ".", ".."):
        name = "avatar"
    return name


class AvatarUploader:
    def __init__(
        self,
        root: Optional[Path] = None,
        max_bytes: Optional[int] = None,
        extensions: Optional[list] = None,
    ):
        self.root = Path(root or settings.uploads_dir)
        self.max_bytes = max_bytes or settings.avatar_max_bytes
        self.extensions = [e.lower() for e in (extensions or settings.avatar_extensions)]

    @property
    def cache_dir(self) -> Path:
        return self.root / CACHE_SUBDIR

    # -----------------------------
    # Validation
    # -----------------------------
    def validate(self, filename: str, content: bytes) -> None:
        ext = Path(filename).suffix.lower().lstrip(".")
        if ext not in self.extensions:
            raise AvatarError(
                f"You are not allowed to upload \"{ext}\" files, allowed types: {', '.join(self.extensions)}"
            )
        if not content:
            raise AvatarError("is empty")
        if len(content) > self.max_bytes:
            raise AvatarError(
                f"is too big ({len(content) / 1024 / 1024:.1f}MB, maximum is {self.max_bytes / 1024 / 1024:.1f}MB)"
            )
        try:
            iio.improps(content, extension=f".{ext}")
        except Exception as exc:
            logger.debug(f"Rejected avatar {filename!r}: {exc}")
            raise AvatarError("is not a valid image") from exc

    # -----------------------------
    # Cache
    # -----------------------------
    def cache(self, filename: str, content: bytes) -> str:
        filename = sanitize_filename(filename)
        self.validate(filename, content)

        token = uuid.uuid4().hex
        target_dir = self.cache_dir / token
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / filename).write_bytes(content)

        cache_name = f"{token}/{filename}"
        logger.debug(f"Cached avatar upload {cache_name}")
        return cache_name

    def cached_path(self, cache_name: str) -> Path:
        if not _CACHE_NAME_RE.match(cache_name or ""):
            raise AvatarError("cache name is invalid")
        token, filename = cache_name.split("/", 1)
        if filename in (".", ".."):
            raise AvatarError("cache name is invalid")

        path = self.cache_dir / token / filename
        if not path.is_file():
            raise AvatarError("cached upload has expired, please upload the file again")
        return path

    def discard(self, cache_name: str) -> None:
        try:
            path = self.cached_path(cache_name)
        except AvatarError:
            return
        shutil.rmtree(path.parent, ignore_errors=True)

    def cleanup_cache(self, ttl_seconds: Optional[int] = None) -> int:
        """Delete cache directories older than the TTL. Returns the count."""
        if not self.cache_dir.exists():
            return 0

        ttl = settings.avatar_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = time.time()
        deleted_count = 0

        for entry in self.cache_dir.iterdir():
            if not entry.is_dir():
                continue
            if now - entry.stat().st_mtime > ttl:
                shutil.rmtree(entry, ignore_errors=True)
                deleted_count += 1

        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} stale avatar cache directories")
        return deleted_count

    # -----------------------------
    # Store
    # -----------------------------
    def store(self, cache_name: str, user_id: int) -> str:
        """Move a cached upload to its permanent place; returns the relative path."""
        source = self.cached_path(cache_name)

        relative = STORE_SUBDIR / str(user_id) / source.name
        target = self.root / relative
        if target.parent.exists():
            shutil.rmtree(target.parent)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))
        shutil.rmtree(source.parent, ignore_errors=True)

        logger.info(f"Stored avatar for user {user_id}: {relative.as_posix()}")
        return relative.as_posix()

    def delete_stored(self, relative_path: Optional[str]) -> None:
        if not relative_path:
            return
        path = (self.root / relative_path).resolve()
        if self.root.resolve() not in path.parents:
            logger.warning(f"Refusing to delete avatar outside uploads: {relative_path}")
            return
        shutil.rmtree(path.parent, ignore_errors=True)


class PendingAvatar:
    """
    The avatar part of one form submission.

    Holds either a cache name (a new or previously cached upload), a
    removal request, or nothing. ``error`` carries a rejected upload so it
    can be reported next to the other field errors.
    """

    def __init__(
        self,
        uploader: AvatarUploader,
        cache_name: Optional[str] = None,
        remove: bool = False,
        error: Optional[str] = None,
    ):
        self.uploader = uploader
        self.cache_name = cache_name
        self.remove = remove
        self.error = error

    @classmethod
    def from_form(
        cls,
        uploader: AvatarUploader,
        *,
        filename: Optional[str] = None,
        content: Optional[bytes] = None,
        cache_name: Optional[str] = None,
        remove: bool = False,
    ) -> "PendingAvatar":
        cache_name = cache_name or None

        if remove:
            if cache_name:
                uploader.discard(cache_name)
            return cls(uploader, remove=True)

        if filename and content is not None:
            # A fresh upload replaces whatever was cached before
            try:
                new_cache_name = uploader.cache(filename, content)
            except AvatarError as exc:
                return cls(uploader, cache_name=cls._still_cached(uploader, cache_name), error=str(exc))
            if cache_name:
                uploader.discard(cache_name)
            return cls(uploader, cache_name=new_cache_name)

        if cache_name:
            try:
                uploader.cached_path(cache_name)
            except AvatarError as exc:
                return cls(uploader, error=str(exc))
            return cls(uploader, cache_name=cache_name)

        return cls(uploader)

    @staticmethod
    def _still_cached(uploader: AvatarUploader, cache_name: Optional[str]) -> Optional[str]:
        if not cache_name:
            return None
        try:
            uploader.cached_path(cache_name)
        except AvatarError:
            return None
        return cache_name

    @property
    def filename(self) -> Optional[str]:
        return self.cache_name.split("/", 1)[1] if self.cache_name else None

    def apply(self, user) -> None:
        """Store or remove the avatar on a user that already has an id."""
        if self.remove:
            self.uploader.delete_stored(user.avatar)
            user.avatar = None
        elif self.cache_name:
            # store() replaces whatever is in the user's avatar directory
            user.avatar = self.uploader.store(self.cache_name, user.id)
            self.cache_name = None


def get_uploader() -> AvatarUploader:
    return AvatarUploader()
