"""ORM model for the activity log of tracked model changes."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utcnow


class ActivityLog(Base):
    """
    One entry per tracked event (created, updated, deleted, restored).

    properties holds {"attributes": {...}} and, for updates, {"old": {...}}.
    """

    __tablename__ = "activity_log"
    __table_args__ = (Index("ix_activity_log_subject", "subject_type", "subject_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_name: Mapped[str] = mapped_column(String(190), nullable=False, default="default", index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    subject_type: Mapped[str] = mapped_column(String(190), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    causer_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    properties: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
