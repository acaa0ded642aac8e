# tests/conftest.py
import itertools
import os
import shutil
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment goes first
STORAGE_DIR = tempfile.mkdtemp(prefix="userbase-test-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_DIR"] = STORAGE_DIR
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"
for _var in ("ADMIN_NAME", "ADMIN_EMAIL", "ADMIN_PASSWORD", "BACKEND_CORS_ORIGINS"):
    os.environ.pop(_var, None)

import imageio.v3 as iio  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from userbase.core.security import hash_password  # noqa: E402
from userbase.db.session import SessionLocal, engine  # noqa: E402
from userbase.main import app  # noqa: E402
from userbase.models.base import Base  # noqa: E402
from userbase.models.role import ADMIN  # noqa: E402
from userbase.models.user import User  # noqa: E402
from userbase.services.avatar_service import AvatarUploader  # noqa: E402
from userbase.services.user_service import find_or_create_role  # noqa: E402

PASSWORD = "s3cur3p@ssw0rd"

_sequence = itertools.count(1)


@pytest.fixture(autouse=True)
def _fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _fresh_storage():
    yield
    # The uploads directory itself stays, it is mounted as static files
    uploads = Path(STORAGE_DIR) / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    for entry in uploads.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry, ignore_errors=True)
        else:
            entry.unlink()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def uploader(tmp_path):
    return AvatarUploader(root=tmp_path / "uploads")


@pytest.fixture
def user_factory(db):
    def make(name=None, email=None, password=PASSWORD, roles=(), **attrs):
        n = next(_sequence)
        user = User(
            name=name or f"User test name {n}",
            email=email or f"user{n}@example.com",
            encrypted_password=hash_password(password),
            **attrs,
        )
        for role_name in roles:
            user.roles.append(find_or_create_role(db, role_name))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return make


@pytest.fixture
def admin(user_factory):
    return user_factory(name="admin", email="admin@example.com", roles=[ADMIN])


@pytest.fixture
def login(client):
    def do_login(user, password=PASSWORD):
        resp = client.post(
            "/login",
            data={"email": user.email, "password": password},
            follow_redirects=False,
        )
        assert resp.status_code == 303, resp.text
        return resp

    return do_login


def image_bytes(extension=".png", size=4):
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    return iio.imwrite("<bytes>", pixels, extension=extension)


@pytest.fixture
def png_bytes():
    return image_bytes(".png")


@pytest.fixture
def jpg_bytes():
    return image_bytes(".jpg")
