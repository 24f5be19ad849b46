"""Request/response schemas for user endpoints.

Request fields are loosely typed on purpose: constraints live in the user
rule set and are reported by the validation service as field-keyed errors.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.role import RoleRead


class UserCreate(BaseModel):
    """Body for POST /user."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    password_confirmation: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    roles: list[str] | None = Field(default=None, description="Role ids (non-empty)")
    avatar: str | None = Field(default=None, description="data:image/<type>;base64,<payload>")


class UserUpdate(BaseModel):
    """Body for PATCH /user/{id}; only the fields sent are validated and written."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    password_confirmation: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    avatar: str | None = None


class RoleAssignment(BaseModel):
    """Body for PUT /user/{id}/roles."""

    roles: list[str] | None = None


class AvatarView(BaseModel):
    original_image: str
    thumbnail: str
    filename: str


class UserRead(BaseModel):
    """External user representation. Never carries password hash, token or pivot data."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    email: str
    firstname: str
    lastname: str | None = None
    fullname: str
    avatar: AvatarView | None = None
    roles: list[RoleRead] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class UsersListResponse(BaseModel):
    users: list[UserRead]


class ActivityRead(BaseModel):
    """Activity log entry for a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    log_name: str
    description: str
    causer_id: str | None = None
    properties: dict[str, Any]
    created_at: datetime


class ActivityListResponse(BaseModel):
    activity: list[ActivityRead]
