"""Domain entities representing user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

NOTIFICATION_CHANNEL_IN_APP = "IN_APP"
NOTIFICATION_CHANNEL_EMAIL = "EMAIL"
NOTIFICATION_CHANNELS = (NOTIFICATION_CHANNEL_IN_APP, NOTIFICATION_CHANNEL_EMAIL)

NOTIFICATION_TYPE_POLL_COMPLETED = "POLL_COMPLETED"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: str
    type: str
    title: str
    message: str
    trip_id: int | None = None
    related_id: int | None = None
    payload: dict[str, Any] | None = None
    is_read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None


@dataclass
class ScheduledNotification:
    """Notification waiting for ``send_at`` before it is delivered.

    ``is_sent`` only ever moves from ``False`` to ``True``.
    """

    id: int | None
    user_id: str
    trip_id: int
    type: str
    title: str
    message: str
    send_at: datetime
    related_id: int | None = None
    payload: dict[str, Any] | None = None
    channel: str = NOTIFICATION_CHANNEL_IN_APP
    is_sent: bool = False


@dataclass(frozen=True)
class TripNotification:
    """Notification content addressed to a trip rather than to a user list."""

    type: str
    title: str
    message: str
    related_id: int | None = None
    payload: dict[str, Any] | None = None
    channel: str = NOTIFICATION_CHANNEL_IN_APP
    send_at: datetime | None = None


@dataclass(frozen=True)
class NotificationRequest:
    """Delivery request handled by the notification fan-out service."""

    user_ids: tuple[str, ...]
    trip_id: int
    type: str
    title: str
    message: str
    related_id: int | None = None
    payload: dict[str, Any] | None = None
    channel: str = NOTIFICATION_CHANNEL_IN_APP
    send_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.channel not in NOTIFICATION_CHANNELS:
            msg = f"Unsupported notification channel: {self.channel!r}"
            raise ValueError(msg)
        object.__setattr__(self, "user_ids", tuple(self.user_ids))

    @classmethod
    def for_users(
        cls, user_ids: tuple[str, ...] | list[str], trip_id: int, notification: TripNotification
    ) -> "NotificationRequest":
        return cls(
            user_ids=tuple(user_ids),
            trip_id=trip_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            related_id=notification.related_id,
            payload=notification.payload,
            channel=notification.channel,
            send_at=notification.send_at,
        )


__all__ = [
    "NOTIFICATION_CHANNEL_EMAIL",
    "NOTIFICATION_CHANNEL_IN_APP",
    "NOTIFICATION_CHANNELS",
    "NOTIFICATION_TYPE_POLL_COMPLETED",
    "Notification",
    "NotificationRequest",
    "ScheduledNotification",
    "TripNotification",
]
