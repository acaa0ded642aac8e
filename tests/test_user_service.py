# tests/test_user_service.py
import pytest
from sqlalchemy.exc import IntegrityError

from userbase.core.errors import RecordInvalid, RecordNotFound
from userbase.core.security import verify_password
from userbase.models.role import Role
from userbase.models.user import User
from userbase.services.avatar_service import PendingAvatar
from userbase.services.user_service import (
    assign_role,
    create_user,
    delete_user,
    find_or_create_role,
    get_user,
    update_user,
)


def valid_data(**overrides):
    data = {
        "name": "newname",
        "email": "somemail@example.com",
        "about": "Some info about me",
        "password": "somegreatpassword",
        "password_confirmation": "somegreatpassword",
    }
    data.update(overrides)
    return data


def test_create_user_hashes_password(db):
    user = create_user(db, valid_data())

    assert user.id is not None
    assert user.name == "newname"
    assert user.about == "Some info about me"
    assert user.encrypted_password != "somegreatpassword"
    assert verify_password("somegreatpassword", user.encrypted_password)
    assert user.roles == []


def test_blank_form_reports_every_missing_field(db):
    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, {"name": "", "email": "", "password": "", "password_confirmation": ""})

    errors = exc_info.value.errors
    assert errors["name"] == ["can't be blank"]
    assert errors["email"] == ["can't be blank"]
    assert errors["password"] == ["can't be blank"]
    assert db.query(User).count() == 0


def test_invalid_email_and_long_name(db):
    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(name="x" * 101, email="not-an-email"))

    errors = exc_info.value.errors
    assert errors["name"] == ["is too long (maximum is 100 characters)"]
    assert errors["email"] == ["is invalid"]


def test_password_rules(db):
    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(password="short", password_confirmation="short"))
    assert exc_info.value.errors["password"] == ["is too short (minimum is 8 characters)"]

    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(password_confirmation="somethingelse"))
    assert exc_info.value.errors == {"password_confirmation": ["doesn't match Password"]}


def test_name_and_email_must_be_unique(db, user_factory):
    user_factory(name="taken", email="taken@example.com")

    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(name="Taken", email="TAKEN@example.com"))

    assert exc_info.value.errors == {
        "name": ["has already been taken"],
        "email": ["has already been taken"],
    }


def test_rejected_avatar_is_a_field_error(db, uploader):
    avatar = PendingAvatar(uploader, error="is not a valid image")

    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(), avatar)

    assert exc_info.value.errors == {"avatar": ["is not a valid image"]}


def test_create_with_cached_avatar_stores_it(db, uploader, jpg_bytes):
    avatar = PendingAvatar.from_form(uploader, filename="image.jpg", content=jpg_bytes)

    user = create_user(db, valid_data(), avatar)

    assert user.avatar == f"user/avatar/{user.id}/image.jpg"
    assert (uploader.root / user.avatar).read_bytes() == jpg_bytes
    assert list(uploader.cache_dir.iterdir()) == []


def test_update_keeps_password_when_blank(db, user_factory):
    user = user_factory(name="before", email="before@example.com")
    old_hash = user.encrypted_password

    update_user(db, user, {"name": "after", "email": "after@example.com", "password": "", "password_confirmation": ""})

    assert user.name == "after"
    assert user.encrypted_password == old_hash


def test_update_changes_password(db, user_factory):
    user = user_factory()

    update_user(
        db,
        user,
        {"name": user.name, "email": user.email, "password": "brandnewpass", "password_confirmation": "brandnewpass"},
    )

    assert verify_password("brandnewpass", user.encrypted_password)


def test_update_may_keep_own_name(db, user_factory):
    user = user_factory(name="same", email="same@example.com")

    update_user(db, user, {"name": "same", "email": "same@example.com"})

    assert user.name == "same"


def test_update_rejects_other_users_email(db, user_factory):
    user_factory(email="other@example.com")
    user = user_factory()

    with pytest.raises(RecordInvalid) as exc_info:
        update_user(db, user, {"name": user.name, "email": "other@example.com"})

    assert exc_info.value.errors == {"email": ["has already been taken"]}


def test_update_can_remove_avatar(db, uploader, png_bytes):
    user = create_user(db, valid_data(), PendingAvatar.from_form(uploader, filename="a.png", content=png_bytes))
    stored = uploader.root / user.avatar

    update_user(db, user, {"name": user.name, "email": user.email}, PendingAvatar.from_form(uploader, remove=True))

    assert user.avatar is None
    assert not stored.exists()


def test_get_and_delete(db, user_factory):
    user = user_factory()
    user_id = user.id

    assert get_user(db, user_id) is user

    delete_user(db, user)

    with pytest.raises(RecordNotFound):
        get_user(db, user_id)


def test_roles_are_created_once(db, user_factory):
    first = user_factory()
    second = user_factory()

    assign_role(db, first, "admin")
    assign_role(db, second, "admin")
    assign_role(db, second, "admin")

    assert db.query(Role).count() == 1
    assert first.is_admin and second.is_admin
    assert [r.label for r in second.roles] == ["Administrator"]
    assert find_or_create_role(db, "admin").id == first.roles[0].id


def fail_commits(monkeypatch, db):
    def commit():
        raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed: users.email"))

    monkeypatch.setattr(db, "commit", commit)


def test_failed_create_keeps_cached_avatar(db, uploader, jpg_bytes, monkeypatch):
    avatar = PendingAvatar.from_form(uploader, filename="image.jpg", content=jpg_bytes)
    cache_name = avatar.cache_name
    fail_commits(monkeypatch, db)

    with pytest.raises(RecordInvalid) as exc_info:
        create_user(db, valid_data(), avatar)

    assert exc_info.value.errors == {"base": ["Name or email has already been taken"]}
    assert avatar.cache_name == cache_name
    assert uploader.cached_path(cache_name).read_bytes() == jpg_bytes
    assert not (uploader.root / "user").exists()


def test_failed_update_keeps_stored_avatar(db, uploader, png_bytes, monkeypatch):
    user = create_user(db, valid_data(), PendingAvatar.from_form(uploader, filename="a.png", content=png_bytes))
    avatar_path = user.avatar
    stored = uploader.root / avatar_path
    fail_commits(monkeypatch, db)

    with pytest.raises(RecordInvalid):
        update_user(db, user, {"name": user.name, "email": user.email}, PendingAvatar.from_form(uploader, remove=True))

    assert stored.exists()
    monkeypatch.undo()
    db.expire_all()
    assert db.get(User, user.id).avatar == avatar_path
