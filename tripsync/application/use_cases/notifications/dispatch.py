"""Promotion of due scheduled notifications into delivered notifications."""

from __future__ import annotations

import logging
from datetime import datetime

from tripsync.application.ports import Store
from tripsync.domain.entities import Notification, ScheduledNotification

logger = logging.getLogger(__name__)


class NotificationDispatchEngine:
    """Claim due scheduled notifications and emit one notification for each.

    Claiming and delivering share one transaction: if delivery fails the claim
    is rolled back with it and the rows are picked up again on the next tick.
    """

    def __init__(self, store: Store, *, batch_size: int | None = None) -> None:
        self._store = store
        self._batch_size = batch_size

    def run(self, now: datetime) -> int:
        """Dispatch everything due at ``now`` and return how many rows were sent."""

        try:
            with self._store.transaction() as tx:
                due = tx.find_due_scheduled_notifications(now, limit=self._batch_size)
                if not due:
                    return 0
                claimed = tx.claim_scheduled_notifications(
                    [item.id for item in due], now
                )
                tx.bulk_insert_notifications(
                    _to_notification(item, now) for item in claimed
                )
        except Exception:
            logger.exception("Scheduled notification dispatch failed; retrying next tick")
            return 0

        skipped = len(due) - len(claimed)
        if skipped:
            logger.info("%s scheduled notifications were claimed by another tick", skipped)
        logger.info("Processed %s scheduled notifications", len(claimed))
        return len(claimed)


def _to_notification(item: ScheduledNotification, now: datetime) -> Notification:
    return Notification(
        id=None,
        user_id=item.user_id,
        trip_id=item.trip_id,
        type=item.type,
        related_id=item.related_id,
        title=item.title,
        message=item.message,
        payload=item.payload,
        created_at=now,
    )


__all__ = ["NotificationDispatchEngine"]
