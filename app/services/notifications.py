"""Notifications sent to notifiable models and the channel that delivers them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.models.base import NotifiableMixin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A message for one recipient on one channel."""

    subject: str
    body: str
    channel: str = "mail"


class Notifier(Protocol):
    def deliver(self, notifiable: NotifiableMixin, notification: Notification) -> bool: ...


class LogNotifier:
    """Delivery channel that writes notifications to the log instead of sending them."""

    def deliver(self, notifiable: NotifiableMixin, notification: Notification) -> bool:
        address = notifiable.route_notification_for(notification.channel)
        if not address:
            logger.warning(
                "No %s route for notifiable; notification dropped: %s",
                notification.channel,
                notification.subject,
            )
            return False
        logger.info(
            "Notification delivered",
            extra={
                "channel": notification.channel,
                "to": address,
                "notification_subject": notification.subject,
            },
        )
        return True


def account_created(username: str) -> Notification:
    return Notification(
        subject="Your account has been created",
        body=f"Hello {username}, an account has been created for you.",
    )
