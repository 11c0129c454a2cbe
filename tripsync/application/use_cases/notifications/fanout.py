"""Best-effort delivery of one notification to many users."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from tripsync.application.ports import Store
from tripsync.domain.entities import (
    Notification,
    NotificationRequest,
    ScheduledNotification,
    TripNotification,
)
from tripsync.utils import Clock, ensure_app_timezone, now_in_app_timezone

logger = logging.getLogger(__name__)


class NotificationFanoutService:
    """Turn a delivery request into notification rows, one per target user.

    Requests with a ``send_at`` later than the current time are stored as
    scheduled notifications and promoted later by the dispatch engine; all
    others become notifications immediately. Storage failures are logged and
    never raised, so the state change that triggered the notification is not
    affected by them.
    """

    def __init__(self, store: Store, *, clock: Clock = now_in_app_timezone) -> None:
        self._store = store
        self._clock = clock

    def deliver(self, request: NotificationRequest) -> None:
        """Deliver ``request`` to each of its target users."""

        user_ids = _unique(request.user_ids)
        if not user_ids:
            return

        now = self._clock()
        try:
            with self._store.transaction() as tx:
                if _is_future(request.send_at, now):
                    tx.insert_scheduled_notifications(
                        ScheduledNotification(
                            id=None,
                            user_id=user_id,
                            trip_id=request.trip_id,
                            type=request.type,
                            related_id=request.related_id,
                            title=request.title,
                            message=request.message,
                            payload=request.payload,
                            channel=request.channel,
                            send_at=request.send_at,
                            is_sent=False,
                        )
                        for user_id in user_ids
                    )
                    logger.debug(
                        "Scheduled %s %s notifications for %s",
                        len(user_ids),
                        request.type,
                        request.send_at.isoformat(),
                    )
                else:
                    tx.insert_notifications(
                        Notification(
                            id=None,
                            user_id=user_id,
                            trip_id=request.trip_id,
                            type=request.type,
                            related_id=request.related_id,
                            title=request.title,
                            message=request.message,
                            payload=request.payload,
                            created_at=now,
                        )
                        for user_id in user_ids
                    )
        except Exception:
            logger.exception(
                "Error delivering %s notification to %s users of trip %s",
                request.type,
                len(user_ids),
                request.trip_id,
            )

    def notify_trip_members(self, trip_id: int, notification: TripNotification) -> None:
        """Deliver ``notification`` to every member of ``trip_id``."""

        self.notify_trip_members_except(trip_id, (), notification)

    def notify_trip_members_except(
        self,
        trip_id: int,
        exclude_user_ids: Iterable[str],
        notification: TripNotification,
    ) -> None:
        """Deliver ``notification`` to the members of ``trip_id`` not excluded."""

        excluded = set(exclude_user_ids)
        try:
            with self._store.transaction() as tx:
                member_ids = tx.list_trip_member_ids(trip_id)
        except Exception:
            logger.exception("Error resolving members of trip %s", trip_id)
            return

        user_ids = [user_id for user_id in member_ids if user_id not in excluded]
        if not user_ids:
            return
        self.deliver(NotificationRequest.for_users(user_ids, trip_id, notification))

    def notify_individual(
        self, user_id: str, trip_id: int, notification: TripNotification
    ) -> None:
        self.deliver(NotificationRequest.for_users([user_id], trip_id, notification))


def _is_future(send_at: datetime | None, now: datetime) -> bool:
    if send_at is None:
        return False
    return ensure_app_timezone(send_at) > ensure_app_timezone(now)


def _unique(user_ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for user_id in user_ids:
        if not user_id or user_id in seen:
            continue
        seen.add(user_id)
        ordered.append(user_id)
    return ordered


__all__ = ["NotificationFanoutService"]
