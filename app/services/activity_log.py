"""Activity log: persist a described entry for each tracked model event."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import ActivityLog
from app.models.base import AuditableMixin

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def log_activity(
    session: Session,
    subject: AuditableMixin,
    event_name: str,
    *,
    causer_id: str | None = None,
    old: dict[str, Any] | None = None,
    settings: Settings | None = None,
) -> ActivityLog | None:
    """
    Add an ActivityLog entry for subject to the session (caller commits).

    The description comes from subject.audit_description(event_name); the
    properties carry the subject's audit attributes and, when given, the old
    values. Returns None without touching the session when logging is disabled.
    """
    settings = settings or get_settings()
    if not settings.ACTIVITY_LOG_ENABLED:
        return None

    properties: dict[str, Any] = {"attributes": subject.audit_attributes()}
    if old is not None:
        properties["old"] = old
    entry = ActivityLog(
        log_name=settings.ACTIVITY_LOG_NAME,
        description=subject.audit_description(event_name),
        subject_type=subject.AUDIT_SUBJECT_TYPE,
        subject_id=str(subject.id),
        causer_id=causer_id,
        properties=properties,
    )
    session.add(entry)
    logger.debug(
        "Activity logged: %s %s %s",
        subject.AUDIT_SUBJECT_TYPE,
        subject.id,
        event_name,
    )
    return entry


def activity_for(session: Session, subject: AuditableMixin) -> list[ActivityLog]:
    """Entries recorded for subject, newest first."""
    stmt = (
        select(ActivityLog)
        .where(
            ActivityLog.subject_type == subject.AUDIT_SUBJECT_TYPE,
            ActivityLog.subject_id == str(subject.id),
        )
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    )
    return list(session.execute(stmt).scalars())
