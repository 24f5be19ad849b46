"""Health check endpoint: database connectivity and avatar storage availability."""

import os
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_avatar_storage
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.avatars import AvatarStorage

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
) -> HealthResponse:
    """
    Return service health status, database connectivity and whether avatar
    uploads can be written. Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"
    root = storage.root
    writable = os.access(root, os.W_OK) if root.exists() else os.access(root.parent, os.W_OK)

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        avatar_storage="writable" if writable else "unavailable",
    )
