"""Role lookup and creation."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Role
from app.services.validation import validate

logger = logging.getLogger(__name__)

ROLE_RULES = {
    "name": "bail|required|string|max:190|unique:roles,name",
    "description": "nullable|string|max:255",
}


def list_roles(session: Session) -> list[Role]:
    return list(session.execute(select(Role).order_by(Role.name)).scalars())


def create_role(session: Session, data: Mapping[str, Any]) -> Role:
    """Validate and insert a role. Raises ValidationError on a duplicate name."""
    validated = validate(session, data, ROLE_RULES)
    role = Role(name=validated["name"], description=validated.get("description"))
    session.add(role)
    session.commit()
    logger.info("Role created", extra={"role_id": role.id, "role_name": role.name})
    return role


def get_or_create_role(session: Session, name: str) -> Role:
    """Return the role called name, creating it if missing (used by scripts)."""
    role = session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
    if role is None:
        role = create_role(session, {"name": name})
    return role
