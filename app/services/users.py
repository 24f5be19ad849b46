"""User persistence flows: create, update, role sync, soft delete, lookup, login."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AvatarError, NotFoundError, ValidationError
from app.core.security import verify_password
from app.models import Role, User
from app.models.base import INCLUDE_DELETED
from app.services.activity_log import log_activity
from app.services.avatars import AvatarStorage
from app.services.notifications import Notifier, account_created
from app.services.validation import validate

logger = logging.getLogger(__name__)

# Columns backed by partial unique indexes.
UNIQUE_FIELDS = ("username", "email")


def _store_avatar(storage: AvatarStorage, user_id: str, data_uri: str) -> str:
    try:
        return storage.store(user_id, data_uri)
    except AvatarError as e:
        raise ValidationError({"avatar": [e.message]}) from e


def _load_roles(session: Session, role_ids: Iterable[str]) -> list[Role]:
    ids = list(dict.fromkeys(str(role_id) for role_id in role_ids))
    roles = session.execute(select(Role).where(Role.id.in_(ids))).scalars().all()
    by_id = {role.id: role for role in roles}
    return [by_id[role_id] for role_id in ids if role_id in by_id]


def _unique_conflict(
    session: Session,
    user_id: str,
    attempted: Mapping[str, Any],
    storage: AvatarStorage,
    stored_avatar: str | None,
) -> ValidationError:
    """
    Undo a write that hit the unique indexes after validation had passed.

    Another transaction took the username or email in the meantime. The
    session is rolled back, the avatar stored for this write is removed and
    the returned error names the taken fields.
    """
    session.rollback()
    if stored_avatar:
        storage.delete(user_id, stored_avatar)
    logger.warning("Unique constraint violated on write", extra={"user_id": user_id})
    rules = {field: f"unique:users,{field},{user_id}" for field in UNIQUE_FIELDS}
    try:
        validate(session, {field: attempted.get(field) for field in UNIQUE_FIELDS}, rules)
    except ValidationError as e:
        return e
    return ValidationError(
        {field: [f"The {field} has already been taken."] for field in UNIQUE_FIELDS}
    )


def create_user(
    session: Session,
    data: Mapping[str, Any],
    storage: AvatarStorage,
    *,
    notifier: Notifier | None = None,
    causer_id: str | None = None,
) -> User:
    """
    Validate data, then insert a user with its roles and optional avatar.

    The id is generated before insertion so the avatar can be stored under it.
    Raises ValidationError (nothing is persisted in that case).
    """
    user = User()
    validated = validate(session, data, user.validation_rules("create"))

    user.fill(validated)
    user_id = user.ensure_identifier()
    if validated.get("avatar"):
        user.avatar = _store_avatar(storage, user_id, validated["avatar"])
    avatar_filename = user.avatar
    attempted = {field: getattr(user, field) for field in UNIQUE_FIELDS}

    session.add(user)
    for role in _load_roles(session, validated["roles"]):
        user.roles.append(role)
    try:
        session.flush()
        log_activity(session, user, "created", causer_id=causer_id)
        session.commit()
    except IntegrityError as e:
        raise _unique_conflict(session, user_id, attempted, storage, avatar_filename) from e

    logger.info("User created", extra={"user_id": user_id, "username": user.username})
    if notifier is not None:
        user.notify(account_created(user.username), notifier)
    return user


def update_user(
    session: Session,
    user: User,
    data: Mapping[str, Any],
    storage: AvatarStorage,
    *,
    causer_id: str | None = None,
) -> User:
    """
    Apply a partial profile update. Only fields present in data are validated
    and only FILLABLE fields (plus avatar) are written. Roles are not touched;
    use sync_roles for that.
    """
    validated = validate(session, data, user.validation_rules("update"))
    old = user.audit_attributes()
    previous_avatar = user.avatar

    # Store the new avatar before touching the instance so a bad image leaves
    # the user unchanged.
    stored_avatar = None
    if validated.get("avatar"):
        stored_avatar = _store_avatar(storage, user.id, validated["avatar"])

    assigned = user.fill(validated)
    if "avatar" in validated:
        user.avatar = stored_avatar

    changed = (
        user.audit_attributes() != old
        or "password" in assigned
        or user.avatar != previous_avatar
    )
    if not changed:
        return user

    user_id = user.id
    attempted = {field: getattr(user, field) for field in UNIQUE_FIELDS}
    try:
        log_activity(session, user, "updated", causer_id=causer_id, old=old)
        session.commit()
    except IntegrityError as e:
        raise _unique_conflict(session, user_id, attempted, storage, stored_avatar) from e

    if previous_avatar and previous_avatar != user.avatar:
        storage.delete(user.id, previous_avatar)
    logger.info("User updated", extra={"user_id": user.id, "fields": sorted(assigned)})
    return user


def sync_roles(
    session: Session,
    user: User,
    role_ids: Any,
    *,
    causer_id: str | None = None,
) -> list[Role]:
    """Replace the user's roles with role_ids (non-empty list of existing role ids)."""
    validated = validate(session, {"roles": role_ids}, user.validation_rules("roles"))
    wanted = _load_roles(session, validated["roles"])
    wanted_ids = {role.id for role in wanted}

    current = user.roles.all()
    current_ids = {role.id for role in current}
    for role in current:
        if role.id not in wanted_ids:
            user.roles.remove(role)
    for role in wanted:
        if role.id not in current_ids:
            user.roles.append(role)
    session.commit()

    logger.info(
        "User roles synced",
        extra={"user_id": user.id, "roles": sorted(r.name for r in wanted), "causer_id": causer_id},
    )
    return wanted


def soft_delete_user(session: Session, user: User, *, causer_id: str | None = None) -> User:
    """Set the deletion marker; the row stays in storage and can be restored."""
    if user.trashed:
        return user
    user.soft_delete()
    log_activity(session, user, "deleted", causer_id=causer_id)
    session.commit()
    logger.info("User soft-deleted", extra={"user_id": user.id})
    return user


def restore_user(session: Session, user: User, *, causer_id: str | None = None) -> User:
    """Clear the deletion marker. Fails if the username or email was taken meanwhile."""
    if not user.trashed:
        return user
    validate(
        session,
        {"username": user.username, "email": user.email},
        {
            "username": f"unique:users,username,{user.id}",
            "email": f"unique:users,email,{user.id}",
        },
    )
    user.restore()
    log_activity(session, user, "restored", causer_id=causer_id)
    session.commit()
    logger.info("User restored", extra={"user_id": user.id})
    return user


def list_users(session: Session, *, include_deleted: bool = False) -> list[User]:
    stmt = (
        select(User)
        .order_by(User.created_at, User.username)
        .execution_options(**{INCLUDE_DELETED: include_deleted})
    )
    return list(session.execute(stmt).scalars())


def get_user(session: Session, user_id: str, *, include_deleted: bool = False) -> User:
    """Look up a user by id; soft-deleted users only with include_deleted."""
    stmt = (
        select(User)
        .where(User.id == user_id)
        .execution_options(**{INCLUDE_DELETED: include_deleted})
    )
    user = session.execute(stmt).scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User '{user_id}' not found.")
    return user


def authenticate(session: Session, login: str, password: str) -> User | None:
    """Return the non-deleted user matching username or email and password."""
    stmt = select(User).where(or_(User.username == login, User.email == login))
    user = session.execute(stmt).scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
