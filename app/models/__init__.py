"""SQLAlchemy ORM models."""

from app.models.activity import ActivityLog
from app.models.base import Base
from app.models.role import Role, role_user
from app.models.user import User

__all__ = ["ActivityLog", "Base", "Role", "User", "role_user"]
