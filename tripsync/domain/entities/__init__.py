"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_CHANNEL_EMAIL,
    NOTIFICATION_CHANNEL_IN_APP,
    NOTIFICATION_CHANNELS,
    NOTIFICATION_TYPE_POLL_COMPLETED,
    Notification,
    NotificationRequest,
    ScheduledNotification,
    TripNotification,
)
from .poll import (
    POLL_STATUS_ACTIVE,
    POLL_STATUS_COMPLETED,
    POLL_STATUS_TIE,
    POLL_STATUSES,
    ExpiredPoll,
    Poll,
    PollOptionTally,
    Vote,
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
    "POLL_STATUS_ACTIVE",
    "POLL_STATUS_COMPLETED",
    "POLL_STATUS_TIE",
    "POLL_STATUSES",
    "ExpiredPoll",
    "Poll",
    "PollOptionTally",
    "Vote",
]
