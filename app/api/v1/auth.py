"""JWT login and auth dependencies (get_current_user, require_roles)."""

import logging
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.deps import get_base_url
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.security import create_access_token, decode_access_token
from app.models.user import User
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import UserRead
from app.services.users import authenticate, get_user

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_response(user: User, base_url: str) -> UserRead:
    """Serialize a user with its roles; hidden attributes are never included."""
    data = user.to_dict(base_url)
    data["roles"] = [role.to_dict() for role in user.roles.all()]
    return UserRead.model_validate(data)


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username (or email) and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    user = authenticate(db, body.login, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )
    token = create_access_token(user)
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if credentials is None:
        raise _unauthenticated("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthenticated("Invalid or expired token")
    sub = payload.get("sub")
    if not sub:
        raise _unauthenticated("Invalid token payload")
    try:
        return get_user(db, str(sub))
    except NotFoundError:
        raise _unauthenticated("User not found")


def require_roles(*roles: str) -> Callable[[User], User]:
    """
    Dependency factory: the current user must hold at least one of roles.
    Denial raises Unauthorized, answered with 401 by the app's error handler.
    """
    required: str | tuple[str, ...] = roles[0] if len(roles) == 1 else roles

    def dependency(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        check = current_user.check_roles(required)
        if not check.allowed:
            logger.warning(
                "Authorization denied",
                extra={"user_id": current_user.id, "required_roles": list(roles)},
            )
        check.unwrap()
        return current_user

    return dependency


@router.get("/me", response_model=UserRead)
def me(
    current_user: Annotated[User, Depends(get_current_user)],
    base_url: Annotated[str, Depends(get_base_url)],
) -> UserRead:
    """Return the authenticated user."""
    return user_response(current_user, base_url)
