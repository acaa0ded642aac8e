# File: userbase/schemas/user.py

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, computed_field, field_validator, model_validator

from userbase.core.config import settings
from userbase.models.user import NAME_MAX_LENGTH

# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_LENGTH = 72


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# -----------------------------
# Roles
# -----------------------------

class RoleRead(BaseModel):
    name: str
    label: str

    class Config:
        from_attributes = True


class OccurrenceKind(str, Enum):
    FIRST = "first_occurrence"
    RECURRENT = "recurrent_occurrence"


class RoleOccurrence(BaseModel):
    """
    Marker telling whether a user's role is the first appearance of that
    role in one rendered listing, or a repeat of an earlier one.

    ``kind`` is None for users without a role.
    """

    kind: Optional[OccurrenceKind] = None
    label: str = ""

    @property
    def is_absent(self) -> bool:
        return self.kind is None

    @property
    def css_class(self) -> str:
        # Users without a role still get an (empty) first_occurrence cell
        return (self.kind or OccurrenceKind.FIRST).value


# -----------------------------
# Users
# -----------------------------

class UserBase(BaseModel):
    name: str
    email: EmailStr
    about: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("can't be blank")
        v = v.strip()
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError(f"is too long (maximum is {NAME_MAX_LENGTH} characters)")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def check_email_present(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("can't be blank")
        return v.strip() if isinstance(v, str) else v

    @field_validator("about", mode="before")
    @classmethod
    def blank_about(cls, v):
        return _blank_to_none(v)


class PasswordConfirmationMismatch(ValueError):
    field = "password_confirmation"
    message = "doesn't match Password"

    def __init__(self):
        super().__init__(self.message)


def _check_password(password: str) -> None:
    if len(password) < settings.password_min_length:
        raise ValueError(f"is too short (minimum is {settings.password_min_length} characters)")
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"is too long (maximum is {PASSWORD_MAX_LENGTH} characters)")


class UserCreate(UserBase):
    password: Optional[str] = None
    password_confirmation: Optional[str] = None

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v):
        if not v:
            raise ValueError("can't be blank")
        _check_password(v)
        return v

    @model_validator(mode="after")
    def check_confirmation(self):
        if self.password_confirmation is not None and self.password_confirmation != self.password:
            raise PasswordConfirmationMismatch()
        return self


class UserUpdate(UserBase):
    # Blank password keeps the current one
    password: Optional[str] = None
    password_confirmation: Optional[str] = None

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v):
        v = _blank_to_none(v)
        if v is not None:
            _check_password(v)
        return v

    @model_validator(mode="after")
    def check_confirmation(self):
        if self.password is not None and (self.password_confirmation or "") != self.password:
            raise PasswordConfirmationMismatch()
        return self


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    about: Optional[str] = None
    avatar: Optional[str] = None
    roles: List[RoleRead] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def avatar_url(self) -> Optional[str]:
        return f"/uploads/{self.avatar}" if self.avatar else None


class AnnotatedUserRead(UserRead):
    role_occurrence: RoleOccurrence


class UserListResponse(BaseModel):
    items: List[AnnotatedUserRead]
    total: int


# -----------------------------
# Listing filter
# -----------------------------

class UserFilter(BaseModel):
    """
    Listing filter; ``*_cont`` means "contains", case-insensitively.

    Blank values count as no filter.
    """

    name_cont: Optional[str] = None
    email_cont: Optional[str] = None

    @field_validator("name_cont", "email_cont", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        return _blank_to_none(v)

    @property
    def is_active(self) -> bool:
        return self.name_cont is not None or self.email_cont is not None
