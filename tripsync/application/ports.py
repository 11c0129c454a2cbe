"""Abstract store operations the background engines depend on."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, Protocol

from tripsync.domain.entities import (
    ExpiredPoll,
    Notification,
    Poll,
    ScheduledNotification,
    Vote,
)


class StoreTransaction(Protocol):
    """Operations executed inside a single store transaction."""

    def find_due_scheduled_notifications(
        self, now: datetime, *, limit: int | None = None
    ) -> Sequence[ScheduledNotification]: ...

    def claim_scheduled_notifications(
        self, ids: Iterable[int], now: datetime
    ) -> Sequence[ScheduledNotification]: ...

    def bulk_insert_notifications(self, notifications: Iterable[Notification]) -> int: ...

    def insert_notifications(self, notifications: Iterable[Notification]) -> int: ...

    def insert_scheduled_notifications(
        self, notifications: Iterable[ScheduledNotification]
    ) -> int: ...

    def find_expired_active_polls(self, now: datetime) -> Sequence[ExpiredPoll]: ...

    def lock_expired_active_poll(self, poll_id: int, now: datetime) -> ExpiredPoll | None: ...

    def close_poll_if_active(
        self,
        poll_id: int,
        *,
        status: str,
        winner_id: int | None,
        completed_at: datetime,
    ) -> bool: ...

    def list_trip_member_ids(self, trip_id: int) -> list[str]: ...

    def lock_poll(self, poll_id: int) -> Poll | None: ...

    def poll_has_option(self, poll_id: int, poll_option_id: int) -> bool: ...

    def upsert_vote(
        self, *, poll_id: int, poll_option_id: int, user_id: str, voted_at: datetime
    ) -> Vote: ...

    def delete_vote(self, *, poll_id: int, user_id: str) -> Vote | None: ...


class Store(Protocol):
    """Durable state shared by the engines and the request handlers."""

    def transaction(self) -> AbstractContextManager[StoreTransaction]: ...


__all__ = ["Store", "StoreTransaction"]
