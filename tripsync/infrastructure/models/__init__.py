"""ORM models used by the application infrastructure."""

from .trip import TripMemberModel, TripModel
from .notification import NotificationModel, ScheduledNotificationModel
from .poll import PollModel, PollOptionModel, VoteModel

__all__ = [
    "TripModel",
    "TripMemberModel",
    "NotificationModel",
    "ScheduledNotificationModel",
    "PollModel",
    "PollOptionModel",
    "VoteModel",
]
