"""Persistence helpers for notification entities."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from tripsync.domain.entities import Notification
from tripsync.infrastructure.models import NotificationModel
from tripsync.utils import ensure_app_naive_datetime, ensure_app_timezone, now_in_app_timezone


class NotificationRepository:
    """Provide persistence operations for :class:`Notification` objects.

    The repository never commits; the surrounding transaction decides.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def bulk_insert(self, notifications: Iterable[Notification]) -> int:
        models = []
        for notification in notifications:
            model = NotificationModel()
            self._apply_entity_to_model(model, notification)
            models.append(model)
        if not models:
            return 0
        self.session.add_all(models)
        self.session.flush()
        return len(models)

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.created_at = (
            ensure_app_naive_datetime(notification.created_at)
            or ensure_app_naive_datetime(now_in_app_timezone())
        )
        model.user_id = notification.user_id
        model.trip_id = notification.trip_id
        model.type = notification.type
        model.related_id = notification.related_id
        model.title = notification.title
        model.message = notification.message
        model.payload = notification.payload
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            trip_id=model.trip_id,
            type=model.type,
            related_id=model.related_id,
            title=model.title,
            message=model.message,
            payload=model.payload,
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
            read_at=ensure_app_timezone(model.read_at),
        )


__all__ = ["NotificationRepository"]
