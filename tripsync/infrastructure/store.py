"""SQLAlchemy backed implementation of the application store."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session, sessionmaker

from tripsync.domain.entities import (
    ExpiredPoll,
    Notification,
    Poll,
    ScheduledNotification,
    Vote,
)
from tripsync.infrastructure.database import session_scope
from tripsync.infrastructure.repositories import (
    NotificationRepository,
    PollRepository,
    ScheduledNotificationRepository,
    TripMemberRepository,
)


class StoreTransaction:
    """Store operations bound to one database session.

    Nothing is committed until the enclosing :meth:`SqlAlchemyStore.transaction`
    block exits without an exception.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.notifications = NotificationRepository(session)
        self.scheduled_notifications = ScheduledNotificationRepository(session)
        self.polls = PollRepository(session)
        self.trip_members = TripMemberRepository(session)

    def find_due_scheduled_notifications(
        self, now: datetime, *, limit: int | None = None
    ) -> Sequence[ScheduledNotification]:
        return self.scheduled_notifications.find_due(now, limit=limit)

    def claim_scheduled_notifications(
        self, ids: Iterable[int], now: datetime
    ) -> Sequence[ScheduledNotification]:
        return self.scheduled_notifications.claim(ids, now)

    def bulk_insert_notifications(self, notifications: Iterable[Notification]) -> int:
        return self.notifications.bulk_insert(notifications)

    def insert_notifications(self, notifications: Iterable[Notification]) -> int:
        return self.notifications.bulk_insert(notifications)

    def insert_scheduled_notifications(
        self, notifications: Iterable[ScheduledNotification]
    ) -> int:
        return self.scheduled_notifications.insert_many(notifications)

    def find_expired_active_polls(self, now: datetime) -> Sequence[ExpiredPoll]:
        polls = self.polls.find_expired_active(now)
        members = self.trip_members.map_user_ids(poll.trip_id for poll in polls)
        for poll in polls:
            poll.member_user_ids = list(members.get(poll.trip_id, []))
        return polls

    def lock_expired_active_poll(self, poll_id: int, now: datetime) -> ExpiredPoll | None:
        poll = self.polls.lock_expired_active(poll_id, now)
        if poll is not None:
            poll.member_user_ids = self.trip_members.list_user_ids(poll.trip_id)
        return poll

    def close_poll_if_active(
        self,
        poll_id: int,
        *,
        status: str,
        winner_id: int | None,
        completed_at: datetime,
    ) -> bool:
        return self.polls.close_if_active(
            poll_id,
            status=status,
            winner_id=winner_id,
            completed_at=completed_at,
            now=completed_at,
        )

    def list_trip_member_ids(self, trip_id: int) -> list[str]:
        return self.trip_members.list_user_ids(trip_id)

    def lock_poll(self, poll_id: int) -> Poll | None:
        return self.polls.lock(poll_id)

    def poll_has_option(self, poll_id: int, poll_option_id: int) -> bool:
        return self.polls.has_option(poll_id, poll_option_id)

    def upsert_vote(
        self, *, poll_id: int, poll_option_id: int, user_id: str, voted_at: datetime
    ) -> Vote:
        return self.polls.upsert_vote(
            poll_id=poll_id,
            poll_option_id=poll_option_id,
            user_id=user_id,
            voted_at=voted_at,
        )

    def delete_vote(self, *, poll_id: int, user_id: str) -> Vote | None:
        return self.polls.delete_vote(poll_id=poll_id, user_id=user_id)


class SqlAlchemyStore:
    """Open :class:`StoreTransaction` scopes on a session factory."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with session_scope(self._session_factory) as session:
            yield StoreTransaction(session)


__all__ = ["SqlAlchemyStore", "StoreTransaction"]
