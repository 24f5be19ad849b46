"""Request/response schemas for role endpoints."""

from pydantic import BaseModel, ConfigDict


class RoleCreate(BaseModel):
    name: str | None = None
    description: str | None = None


class RoleRead(BaseModel):
    """Role without pivot metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None


class RolesListResponse(BaseModel):
    roles: list[RoleRead]
