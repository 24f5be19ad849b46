"""ORM model for roles and the role_user join table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from app.models.user import User

# Pivot table backing User <-> Role. created_at is pivot metadata and is
# never part of a serialized user or role.
role_user = Table(
    "role_user",
    Base.metadata,
    Column("role_id", String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Named role held by any number of users (e.g. admin, editor)."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(190), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    users: Mapped[list[User]] = relationship(
        "User",
        secondary=role_user,
        back_populates="roles",
    )

    def __repr__(self) -> str:
        return f"Role(id={self.id}, name={self.name})"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }
