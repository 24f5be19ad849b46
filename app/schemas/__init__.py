"""Pydantic request/response schemas."""

from app.schemas.auth import ErrorResponse, LoginRequest, TokenResponse
from app.schemas.health import HealthResponse
from app.schemas.role import RoleCreate, RoleRead, RolesListResponse
from app.schemas.user import (
    ActivityListResponse,
    ActivityRead,
    AvatarView,
    RoleAssignment,
    UserCreate,
    UserRead,
    UsersListResponse,
    UserUpdate,
)

__all__ = [
    "ActivityListResponse",
    "ActivityRead",
    "AvatarView",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "RoleAssignment",
    "RoleCreate",
    "RoleRead",
    "RolesListResponse",
    "TokenResponse",
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "UsersListResponse",
]
