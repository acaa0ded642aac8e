# File: userbase/services/user_service.py

"""
User create / update / delete.

Form or JSON input is validated with the pydantic schemas; their errors,
duplicate names/emails and a rejected avatar are collected into one
``RecordInvalid`` so a form can show every problem at once.
"""

from typing import Any, Dict, List, Mapping, Optional, Type

from loguru import logger
from pydantic import BaseModel, ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userbase.core.errors import RecordInvalid, RecordNotFound
from userbase.core.security import hash_password
from userbase.models.role import Role
from userbase.models.user import User
from userbase.schemas.user import PasswordConfirmationMismatch, UserCreate, UserUpdate
from userbase.services.avatar_service import PendingAvatar

TAKEN = "has already been taken"


def errors_from_validation(exc: ValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        ctx = err.get("ctx") or {}
        error = ctx.get("error")

        if isinstance(error, PasswordConfirmationMismatch):
            field, message = error.field, error.message
        else:
            field = str(err["loc"][0]) if err["loc"] else "base"
            if err["type"] == "missing":
                message = "can't be blank"
            elif isinstance(error, ValueError):
                message = str(error)
            else:
                message = "is invalid"

        errors.setdefault(field, []).append(message)
    return errors


def _validate(schema: Type[BaseModel], data: Mapping[str, Any]):
    try:
        return schema.model_validate(dict(data)), {}
    except ValidationError as exc:
        return None, errors_from_validation(exc)


def _uniqueness_errors(
    db: Session,
    data: Mapping[str, Any],
    exclude_id: Optional[int] = None,
) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for field, column in (("name", User.name), ("email", User.email)):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            continue
        query = db.query(User.id).filter(func.lower(column) == value.strip().lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            errors.setdefault(field, []).append(TAKEN)
    return errors


def _merge(*sources: Dict[str, List[str]]) -> Dict[str, List[str]]:
    merged: Dict[str, List[str]] = {}
    for source in sources:
        for field, messages in source.items():
            merged.setdefault(field, []).extend(messages)
    return merged


def _commit(db: Session) -> None:
    # The unique indexes still guard against a race between check and insert
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"Integrity error while saving user: {exc.orig}")
        raise RecordInvalid({"base": ["Name or email has already been taken"]})


def _apply_avatar(db: Session, user: User, avatar: Optional[PendingAvatar]) -> None:
    # Files are only moved or deleted once the row itself is saved, so a
    # failed save leaves the cached upload and the stored avatar in place
    if avatar is None or not (avatar.remove or avatar.cache_name):
        return
    avatar.apply(user)
    db.commit()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise RecordNotFound("User", user_id)
    return user


def create_user(
    db: Session,
    data: Mapping[str, Any],
    avatar: Optional[PendingAvatar] = None,
) -> User:
    payload, errors = _validate(UserCreate, data)
    errors = _merge(errors, _uniqueness_errors(db, data))
    if avatar is not None and avatar.error:
        errors = _merge(errors, {"avatar": [avatar.error]})
    if errors:
        raise RecordInvalid(errors)

    user = User(
        name=payload.name,
        email=payload.email,
        about=payload.about,
        encrypted_password=hash_password(payload.password),
    )
    db.add(user)
    _commit(db)
    _apply_avatar(db, user, avatar)
    db.refresh(user)
    logger.info(f"Created user {user.id} ({user.name!r})")
    return user


def update_user(
    db: Session,
    user: User,
    data: Mapping[str, Any],
    avatar: Optional[PendingAvatar] = None,
) -> User:
    payload, errors = _validate(UserUpdate, data)
    errors = _merge(errors, _uniqueness_errors(db, data, exclude_id=user.id))
    if avatar is not None and avatar.error:
        errors = _merge(errors, {"avatar": [avatar.error]})
    if errors:
        raise RecordInvalid(errors)

    user.name = payload.name
    user.email = payload.email
    user.about = payload.about
    if payload.password is not None:
        user.encrypted_password = hash_password(payload.password)

    _commit(db)
    _apply_avatar(db, user, avatar)
    db.refresh(user)
    logger.info(f"Updated user {user.id} ({user.name!r})")
    return user


def delete_user(db: Session, user: User, avatar_uploader=None) -> None:
    if avatar_uploader is not None:
        avatar_uploader.delete_stored(user.avatar)
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info(f"Deleted user {user_id}")


def find_or_create_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
    return role


def assign_role(db: Session, user: User, name: str) -> User:
    role = find_or_create_role(db, name)
    if role not in user.roles:
        user.roles.append(role)
    db.commit()
    db.refresh(user)
    return user
