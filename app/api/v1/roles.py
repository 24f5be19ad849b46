"""Role listing and creation."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import ADMIN_ROLE, get_current_user, require_roles
from app.core.database import get_db
from app.models.user import User
from app.schemas.role import RoleCreate, RoleRead, RolesListResponse
from app.services.roles import create_role, list_roles

router = APIRouter()


@router.get("", response_model=RolesListResponse)
def list_all(
    _user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RolesListResponse:
    """List roles (any authenticated user)."""
    return RolesListResponse(roles=[RoleRead.model_validate(r) for r in list_roles(db)])


@router.post("", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
def create(
    body: RoleCreate,
    _admin: Annotated[User, Depends(require_roles(ADMIN_ROLE))],
    db: Annotated[Session, Depends(get_db)],
) -> RoleRead:
    """Create a role (admin only)."""
    return RoleRead.model_validate(create_role(db, body.model_dump(exclude_unset=True)))
