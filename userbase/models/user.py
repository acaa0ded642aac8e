# File: userbase/models/user.py

"""
User model.

Identity and profile columns plus the sign-in bookkeeping maintained by
``userbase.services.auth_service`` (sign-in counters, lockout state).
Name and email carry unique indexes.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from userbase.models.base import Base
from userbase.models.role import ADMIN, Role, users_roles

NAME_MAX_LENGTH = 100


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    encrypted_password: Mapped[str] = mapped_column(String(255), nullable=False)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Path of the stored avatar, relative to the uploads directory
    # e.g. "user/avatar/3/image.jpg"
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)

    sign_in_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_sign_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sign_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    current_sign_in_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    last_sign_in_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    failed_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Ordered by role id, so roles[0] is the primary role
    roles: Mapped[list[Role]] = relationship(
        Role,
        secondary=users_roles,
        order_by=Role.id,
        lazy="selectin",
    )

    def has_role(self, name: str) -> bool:
        return any(role.name == name for role in self.roles)

    @property
    def is_admin(self) -> bool:
        return self.has_role(ADMIN)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.name!r}>"
