"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .poll_repository import PollRepository
from .scheduled_notification_repository import ScheduledNotificationRepository
from .trip_member_repository import TripMemberRepository

__all__ = [
    "NotificationRepository",
    "PollRepository",
    "ScheduledNotificationRepository",
    "TripMemberRepository",
]
