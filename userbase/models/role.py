# File: userbase/models/role.py

"""
Role model.

A role is a named permission grouping. Roles differ only by data: the
``name`` is the identifier checked by authorization (``admin``), the
``label`` is what the pages display (``Administrator``).
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, func
from sqlalchemy.orm import Mapped, mapped_column

from userbase.models.base import Base

ADMIN = "admin"

ROLE_LABELS = {
    ADMIN: "Administrator",
}


users_roles = Table(
    "users_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)


def label_for(name: str) -> str:
    return ROLE_LABELS.get(name, name.replace("_", " ").title())


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    @property
    def label(self) -> str:
        return label_for(self.name)

    def __repr__(self) -> str:
        return f"<Role {self.name!r}>"
