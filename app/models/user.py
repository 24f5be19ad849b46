"""ORM model for application users (auth, RBAC, soft delete, activity log)."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Literal

from sqlalchemy import Index, String, text
from sqlalchemy.orm import DynamicMapped, Mapped, mapped_column, relationship

from app.core.exceptions import PreconditionError, Unauthorized
from app.core.security import hash_password
from app.models.base import (
    AuditableMixin,
    Base,
    NotifiableMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from app.models.role import Role, role_user

RuleFlow = Literal["create", "update", "roles"]

# Path appended to the public base URL for avatar files.
AVATAR_PATH_TEMPLATE = "/api/user/{id}/avatar/"

# Accepted avatar input: data:image/<type>;base64,<payload>.
AVATAR_DATA_URI_PATTERN = r'^data:image\/([a-zA-Z]+);base64,([^"]+)$'

# Declarative rule set consumed by app.services.validation.
# unique rules are checked against non-deleted rows only.
USER_RULES: dict[str, str | tuple[str, ...]] = {
    "username": "bail|required|max:190|unique:users,username",
    "email": "bail|required|max:190|email|unique:users,email",
    "password": "bail|required|max:32|confirmed|min:3",
    "firstname": "bail|required|max:190",
    "lastname": "nullable|max:190",
    "roles": "bail|required|array",
    "roles.*": "exists:roles,id",
    "avatar": (
        "nullable",
        f"regex:/{AVATAR_DATA_URI_PATTERN}/",
    ),
}

ROLE_FIELDS = ("roles", "roles.*")


# A word starts at the beginning of the string or after any whitespace character.
_WORD_START = re.compile(r"(^|[ \t\r\n\f\v])(\S)")


def _capitalize_words(value: str) -> str:
    """Upper-case the first letter of every word; leave the rest."""
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), value)


def _split_rules(rules: str | tuple[str, ...]) -> list[str]:
    if isinstance(rules, str):
        return [rule for rule in rules.split("|") if rule]
    return list(rules)


@dataclass(frozen=True)
class RoleCheck:
    """Outcome of a role check: allowed, or the Unauthorized error to raise."""

    allowed: bool
    error: Unauthorized | None = None

    def unwrap(self) -> bool:
        if self.error is not None:
            raise self.error
        return self.allowed


class User(
    UUIDPrimaryKeyMixin,
    TimestampMixin,
    SoftDeleteMixin,
    NotifiableMixin,
    AuditableMixin,
    Base,
):
    """
    Authenticatable account with roles.

    Only FILLABLE attributes may be set from user input (see fill()).
    HIDDEN attributes never appear in to_dict() or in the activity log.
    """

    __tablename__ = "users"
    __table_args__ = (
        # Uniqueness holds among non-deleted users only.
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    AUDIT_SUBJECT_TYPE: ClassVar[str] = "user"
    FILLABLE: ClassVar[tuple[str, ...]] = (
        "username",
        "email",
        "password",
        "firstname",
        "lastname",
    )
    HIDDEN: ClassVar[tuple[str, ...]] = ("password", "remember_token", "pivot")
    # Columns backing hidden attributes.
    HIDDEN_COLUMNS: ClassVar[tuple[str, ...]] = ("password_hash", "remember_token")

    username: Mapped[str] = mapped_column(String(190), nullable=False)
    email: Mapped[str] = mapped_column(String(190), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    firstname: Mapped[str] = mapped_column(String(190), nullable=False)
    lastname: Mapped[str | None] = mapped_column(String(190), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remember_token: Mapped[str | None] = mapped_column(String(100), nullable=True)

    roles: DynamicMapped[Role] = relationship(
        Role,
        secondary=role_user,
        back_populates="users",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, email={self.email})"

    # JWT subject

    def identity_claim(self) -> str:
        """Value stored in the subject claim of the JWT."""
        return self.id

    def custom_claims(self) -> dict[str, Any]:
        """Extra claims to add to the JWT."""
        return {}

    # Roles

    def has_role(self, role: str) -> bool:
        """Check one role by exact name. Queries the relation on every call."""
        return self.roles.filter(Role.name == role).first() is not None

    def has_any_role(self, roles: Iterable[str]) -> bool:
        """Check multiple roles; True if the user holds at least one of them."""
        names = list(roles)
        if not names:
            return False
        return self.roles.filter(Role.name.in_(names)).first() is not None

    def check_roles(self, roles: str | Iterable[str]) -> RoleCheck:
        """Pure role check. Never raises; the caller decides what denial means."""
        if isinstance(roles, str):
            allowed = self.has_role(roles)
            required = roles
        else:
            names = sorted(roles) if isinstance(roles, (set, frozenset)) else list(roles)
            allowed = self.has_any_role(names)
            required = ",".join(names)
        if allowed:
            return RoleCheck(allowed=True)
        return RoleCheck(
            allowed=False,
            error=Unauthorized(
                f"This action is unauthorized. Only {required} can access this action."
            ),
        )

    def authorize_roles(self, roles: str | Iterable[str]) -> bool:
        """
        Return True if the user holds (any of) the given role(s).

        Raises Unauthorized naming the required role(s) otherwise.
        """
        return self.check_roles(roles).unwrap()

    # Computed attributes

    def fullname(self) -> str:
        if not self.firstname:
            raise PreconditionError("fullname requires firstname to be set")
        if not self.lastname:
            return _capitalize_words(self.firstname)
        return _capitalize_words(f"{self.firstname} {self.lastname}")

    def avatar_view(self, base_url: str) -> dict[str, str] | None:
        """URLs of the stored avatar, or None when the user has none."""
        if not self.avatar:
            return None
        image_url = base_url.rstrip("/") + AVATAR_PATH_TEMPLATE.format(id=self.id)
        return {
            "original_image": f"{image_url}original@{self.avatar}",
            "thumbnail": f"{image_url}thumbnail@{self.avatar}",
            "filename": self.avatar,
        }

    def audit_description(self, event_name: str) -> str:
        return f"This user has been {event_name}"

    # Input handling

    def fill(self, data: Mapping[str, Any]) -> list[str]:
        """
        Mass-assign FILLABLE attributes present in data; ignore everything else.

        password is hashed into password_hash. Returns the assigned names.
        """
        assigned = []
        for name in self.FILLABLE:
            if name not in data:
                continue
            if name == "password":
                self.password_hash = hash_password(data[name])
            else:
                setattr(self, name, data[name])
            assigned.append(name)
        return assigned

    def validation_rules(self, flow: RuleFlow = "create") -> dict[str, list[str]]:
        """
        Rule set for the given flow.

        create: every rule. update: fields are validated only when present,
        roles are left to the roles flow, and unique rules ignore this user's
        own row. roles: only the role list rules.
        """
        return user_rules(flow, ignore_id=self.id if flow == "update" else None)

    def to_dict(self, base_url: str) -> dict[str, Any]:
        """External representation; hidden attributes and pivot data are omitted."""
        data: dict[str, Any] = {}
        for column in self.__table__.columns:
            if column.key in self.HIDDEN_COLUMNS:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            data[column.key] = value
        data["avatar"] = self.avatar_view(base_url)
        data["fullname"] = self.fullname()
        return data


def user_rules(flow: RuleFlow = "create", ignore_id: str | None = None) -> dict[str, list[str]]:
    """Build the rule set for a flow (see User.validation_rules)."""
    if flow == "roles":
        return {field: _split_rules(USER_RULES[field]) for field in ROLE_FIELDS}

    rules: dict[str, list[str]] = {}
    for field, expression in USER_RULES.items():
        parsed = _split_rules(expression)
        if flow == "update":
            if field in ROLE_FIELDS:
                continue
            parsed = ["sometimes"] + parsed
            if ignore_id:
                parsed = [
                    f"{rule},{ignore_id}" if rule.startswith("unique:") else rule
                    for rule in parsed
                ]
        rules[field] = parsed
    return rules
