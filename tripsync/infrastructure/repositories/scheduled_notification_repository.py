"""Persistence helpers for notifications waiting for their send time."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from tripsync.domain.entities import ScheduledNotification
from tripsync.infrastructure.models import ScheduledNotificationModel
from tripsync.utils import ensure_app_naive_datetime, ensure_app_timezone


class ScheduledNotificationRepository:
    """Provide persistence operations for :class:`ScheduledNotification` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert_many(self, notifications: Iterable[ScheduledNotification]) -> int:
        models = [self._to_model(notification) for notification in notifications]
        if not models:
            return 0
        self.session.add_all(models)
        self.session.flush()
        return len(models)

    def find_due(self, now: datetime, *, limit: int | None = None) -> Sequence[ScheduledNotification]:
        """Return unsent rows whose ``send_at`` is not after ``now``."""

        query = (
            self.session.query(ScheduledNotificationModel)
            .filter(ScheduledNotificationModel.is_sent.is_(False))
            .filter(ScheduledNotificationModel.send_at <= ensure_app_naive_datetime(now))
            .order_by(ScheduledNotificationModel.send_at, ScheduledNotificationModel.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def claim(self, ids: Iterable[int], now: datetime) -> Sequence[ScheduledNotification]:
        """Flip ``is_sent`` for the still-unsent due rows among ``ids``.

        Only the rows changed by this call are returned. A row already claimed by
        another transaction is left out, so a concurrent caller can never claim
        the same row twice.
        """

        id_list = [scheduled_id for scheduled_id in ids if scheduled_id is not None]
        if not id_list:
            return []

        naive_now = ensure_app_naive_datetime(now)
        conditions = (
            ScheduledNotificationModel.id.in_(id_list),
            ScheduledNotificationModel.is_sent.is_(False),
            ScheduledNotificationModel.send_at <= naive_now,
        )
        statement = (
            update(ScheduledNotificationModel)
            .values(is_sent=True)
            .execution_options(synchronize_session=False)
        )

        if self.session.get_bind().dialect.update_returning:
            claimed_ids = self.session.scalars(
                statement.where(*conditions).returning(ScheduledNotificationModel.id)
            ).all()
        else:
            claimed_ids = self.session.scalars(
                select(ScheduledNotificationModel.id)
                .where(*conditions)
                .with_for_update(skip_locked=True)
            ).all()
            if claimed_ids:
                self.session.execute(
                    statement.where(
                        ScheduledNotificationModel.id.in_(claimed_ids),
                        ScheduledNotificationModel.is_sent.is_(False),
                    )
                )

        if not claimed_ids:
            return []
        models = self.session.scalars(
            select(ScheduledNotificationModel)
            .where(ScheduledNotificationModel.id.in_(claimed_ids))
            .order_by(ScheduledNotificationModel.id)
            .execution_options(populate_existing=True)
        ).all()
        return [self._to_entity(model) for model in models]

    @staticmethod
    def _to_model(notification: ScheduledNotification) -> ScheduledNotificationModel:
        return ScheduledNotificationModel(
            user_id=notification.user_id,
            trip_id=notification.trip_id,
            type=notification.type,
            related_id=notification.related_id,
            title=notification.title,
            message=notification.message,
            payload=notification.payload,
            channel=notification.channel,
            send_at=ensure_app_naive_datetime(notification.send_at),
            is_sent=notification.is_sent,
        )

    @staticmethod
    def _to_entity(model: ScheduledNotificationModel) -> ScheduledNotification:
        return ScheduledNotification(
            id=model.id,
            user_id=model.user_id,
            trip_id=model.trip_id,
            type=model.type,
            related_id=model.related_id,
            title=model.title,
            message=model.message,
            payload=model.payload,
            channel=model.channel,
            send_at=ensure_app_timezone(model.send_at),
            is_sent=bool(model.is_sent),
        )


__all__ = ["ScheduledNotificationRepository"]
