"""SQLAlchemy declarative Base and the capabilities composed onto models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import DateTime, MetaData, String, event
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    ORMExecuteState,
    Session,
    mapped_column,
    with_loader_criteria,
)

if TYPE_CHECKING:
    from app.services.notifications import Notification, Notifier

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Execution option that lets a statement see soft-deleted rows.
INCLUDE_DELETED = "include_deleted"


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_identifier() -> str:
    """Generate a primary key before insertion (ids never auto-increment)."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDPrimaryKeyMixin:
    """String UUID primary key assigned on the client side."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_identifier)

    def ensure_identifier(self) -> str:
        """Assign an id now if none was set, so it is known before flush."""
        if not self.id:
            self.id = new_identifier()
        return self.id


class TimestampMixin:
    """created_at / updated_at maintained by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class SoftDeleteMixin:
    """
    Logical deletion through a deleted_at marker.

    Rows with the marker set stay in storage but are filtered out of every ORM
    select unless the statement is executed with the include_deleted option:

        select(User).execution_options(include_deleted=True)
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()

    def restore(self) -> None:
        self.deleted_at = None


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    if (
        execute_state.is_select
        and execute_state.is_orm_statement
        and not execute_state.is_column_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
            )
        )


class NotifiableMixin:
    """Lets a model receive notifications through a delivery channel."""

    def route_notification_for(self, channel: str) -> str | None:
        """Address for channel; mail goes to the email attribute."""
        if channel == "mail":
            return getattr(self, "email", None)
        return None

    def notify(self, notification: Notification, notifier: Notifier) -> bool:
        return notifier.deliver(self, notification)


class AuditableMixin:
    """
    Supplies what the activity log records for a model.

    FILLABLE lists the attributes captured in each entry; anything in HIDDEN
    is never written to the log.
    """

    AUDIT_SUBJECT_TYPE: ClassVar[str] = ""
    FILLABLE: ClassVar[tuple[str, ...]] = ()
    HIDDEN: ClassVar[tuple[str, ...]] = ()

    def audit_description(self, event_name: str) -> str:
        return f"This record has been {event_name}"

    def audit_attributes(self) -> dict[str, Any]:
        return {
            name: getattr(self, name, None)
            for name in self.FILLABLE
            if name not in self.HIDDEN
        }
