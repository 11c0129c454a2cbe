"""Notification fan-out and scheduled dispatch."""

from .dispatch import NotificationDispatchEngine
from .fanout import NotificationFanoutService

__all__ = ["NotificationDispatchEngine", "NotificationFanoutService"]
