"""User CRUD, role assignment, activity and avatar file routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from app.api.deps import get_avatar_storage, get_base_url, get_notifier
from app.api.v1.auth import ADMIN_ROLE, get_current_user, require_roles, user_response
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.models.user import User
from app.schemas.role import RoleRead
from app.schemas.user import (
    ActivityListResponse,
    ActivityRead,
    RoleAssignment,
    UserCreate,
    UserRead,
    UsersListResponse,
    UserUpdate,
)
from app.services.activity_log import activity_for
from app.services.avatars import AvatarStorage
from app.services.notifications import Notifier
from app.services.users import (
    create_user,
    get_user,
    list_users,
    restore_user,
    soft_delete_user,
    sync_roles,
    update_user,
)

router = APIRouter()

AdminUser = Annotated[User, Depends(require_roles(ADMIN_ROLE))]
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[AvatarStorage, Depends(get_avatar_storage)]
BaseUrl = Annotated[str, Depends(get_base_url)]


def _ensure_self_or_admin(current_user: User, user_id: str) -> None:
    if current_user.id != user_id:
        current_user.authorize_roles(ADMIN_ROLE)


@router.get("", response_model=UsersListResponse)
def list_all(
    _admin: AdminUser,
    db: DbSession,
    base_url: BaseUrl,
    include_deleted: bool = Query(default=False, description="Include soft-deleted users"),
) -> UsersListResponse:
    """List users (admin only)."""
    users = list_users(db, include_deleted=include_deleted)
    return UsersListResponse(users=[user_response(u, base_url) for u in users])


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create(
    body: UserCreate,
    admin: AdminUser,
    db: DbSession,
    storage: Storage,
    base_url: BaseUrl,
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> UserRead:
    """Create a user with roles and optional avatar (admin only)."""
    user = create_user(
        db,
        body.model_dump(exclude_unset=True),
        storage,
        notifier=notifier,
        causer_id=admin.id,
    )
    return user_response(user, base_url)


@router.get("/{user_id}", response_model=UserRead)
def read(
    user_id: str,
    current_user: CurrentUser,
    db: DbSession,
    base_url: BaseUrl,
    with_deleted: bool = Query(default=False, description="Also find soft-deleted users"),
) -> UserRead:
    """Return one user. Users may read themselves; admins may read anyone."""
    _ensure_self_or_admin(current_user, user_id)
    if with_deleted:
        current_user.authorize_roles(ADMIN_ROLE)
    return user_response(get_user(db, user_id, include_deleted=with_deleted), base_url)


@router.patch("/{user_id}", response_model=UserRead)
def update(
    user_id: str,
    body: UserUpdate,
    current_user: CurrentUser,
    db: DbSession,
    storage: Storage,
    base_url: BaseUrl,
) -> UserRead:
    """Partial profile update. Roles are changed through PUT /{user_id}/roles."""
    _ensure_self_or_admin(current_user, user_id)
    user = get_user(db, user_id)
    update_user(
        db,
        user,
        body.model_dump(exclude_unset=True),
        storage,
        causer_id=current_user.id,
    )
    return user_response(user, base_url)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(user_id: str, admin: AdminUser, db: DbSession) -> Response:
    """Soft-delete a user (admin only)."""
    soft_delete_user(db, get_user(db, user_id), causer_id=admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/restore", response_model=UserRead)
def restore(user_id: str, admin: AdminUser, db: DbSession, base_url: BaseUrl) -> UserRead:
    """Restore a soft-deleted user (admin only)."""
    user = get_user(db, user_id, include_deleted=True)
    restore_user(db, user, causer_id=admin.id)
    return user_response(user, base_url)


@router.put("/{user_id}/roles", response_model=list[RoleRead])
def assign_roles(
    user_id: str,
    body: RoleAssignment,
    admin: AdminUser,
    db: DbSession,
) -> list[RoleRead]:
    """Replace the user's roles (admin only)."""
    roles = sync_roles(db, get_user(db, user_id), body.roles, causer_id=admin.id)
    return [RoleRead.model_validate(role) for role in roles]


@router.get("/{user_id}/activity", response_model=ActivityListResponse)
def activity(user_id: str, _admin: AdminUser, db: DbSession) -> ActivityListResponse:
    """Activity log entries for a user, newest first (admin only)."""
    user = get_user(db, user_id, include_deleted=True)
    return ActivityListResponse(
        activity=[ActivityRead.model_validate(entry) for entry in activity_for(db, user)]
    )


@router.get("/{user_id}/avatar/{image}")
def avatar(user_id: str, image: str, storage: Storage) -> FileResponse:
    """Serve an avatar file; image is "<variant>@<filename>" (original or thumbnail)."""
    variant, sep, filename = image.partition("@")
    if not sep:
        raise NotFoundError("Avatar not found.")
    path = storage.path_for(user_id, variant, filename)
    if not path.is_file():
        raise NotFoundError("Avatar not found.")
    return FileResponse(path)
