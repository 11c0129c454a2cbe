"""Shared fixtures: an in-memory database, a store and seeding helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

import pytest

from tripsync.config import reset_settings_cache
from tripsync.domain.entities import (
    POLL_STATUS_ACTIVE,
    Notification,
    Poll,
    ScheduledNotification,
)
from tripsync.infrastructure.database import (
    build_session_factory,
    create_database_engine,
    initialize_database,
    session_scope,
)
from tripsync.infrastructure.models import (
    NotificationModel,
    PollModel,
    PollOptionModel,
    ScheduledNotificationModel,
    TripMemberModel,
    TripModel,
    VoteModel,
)
from tripsync.infrastructure.repositories import (
    NotificationRepository,
    PollRepository,
    ScheduledNotificationRepository,
)
from tripsync.infrastructure.store import SqlAlchemyStore
from tripsync.utils import get_app_timezone

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def naive(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@pytest.fixture(autouse=True)
def utc_app_timezone(monkeypatch: pytest.MonkeyPatch):
    """Pin the application timezone so stored wall-clock times are UTC."""

    monkeypatch.setenv("APP_TIMEZONE", "UTC")
    reset_settings_cache()
    get_app_timezone.cache_clear()
    yield
    reset_settings_cache()
    get_app_timezone.cache_clear()


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def engine():
    engine = create_database_engine("sqlite://")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def store(session_factory) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_factory)


class Seeder:
    """Create rows for tests and read them back, one short session each."""

    def __init__(self, session_factory) -> None:
        self._factory = session_factory

    def trip(self, members: Iterable[str] = ("alice", "bob", "carol"), *, name: str = "Lisbon") -> int:
        with session_scope(self._factory) as session:
            trip = TripModel(name=name)
            trip.members = [TripMemberModel(user_id=user_id) for user_id in members]
            session.add(trip)
            session.flush()
            return trip.id

    def poll(
        self,
        trip_id: int,
        *,
        expires_at: datetime,
        options: Sequence[tuple[int | None, str, int]] = (),
        question: str = "Where should we eat?",
        status: str = POLL_STATUS_ACTIVE,
        created_by: str = "alice",
    ) -> tuple[int, list[int]]:
        """Create a poll whose options carry ``(id, text, vote_count)``."""

        with session_scope(self._factory) as session:
            poll = PollModel(
                trip_id=trip_id,
                question=question,
                status=status,
                expires_at=naive(expires_at),
                created_by_id=created_by,
            )
            session.add(poll)
            session.flush()
            option_ids = []
            for option_id, text, vote_count in options:
                option = PollOptionModel(id=option_id, poll_id=poll.id, option=text)
                session.add(option)
                session.flush()
                option_ids.append(option.id)
                for index in range(vote_count):
                    session.add(
                        VoteModel(
                            poll_id=poll.id,
                            poll_option_id=option.id,
                            user_id=f"voter-{option.id}-{index}",
                            voted_at=naive(expires_at - timedelta(hours=1)),
                        )
                    )
            session.flush()
            return poll.id, option_ids

    def scheduled(
        self,
        *,
        trip_id: int,
        send_at: datetime,
        user_id: str = "alice",
        type: str = "EVENT_REMINDER",
        related_id: int | None = 42,
        title: str = "Dinner soon",
        message: str = "Dinner at Time Out Market starts in one hour.",
        payload: dict | None = None,
        is_sent: bool = False,
    ) -> int:
        with session_scope(self._factory) as session:
            model = ScheduledNotificationModel(
                user_id=user_id,
                trip_id=trip_id,
                type=type,
                related_id=related_id,
                title=title,
                message=message,
                payload=payload,
                channel="IN_APP",
                send_at=naive(send_at),
                is_sent=is_sent,
            )
            session.add(model)
            session.flush()
            return model.id

    def notifications(self) -> list[Notification]:
        with session_scope(self._factory) as session:
            models = session.query(NotificationModel).order_by(NotificationModel.id).all()
            return [NotificationRepository._to_entity(model) for model in models]

    def scheduled_notification(self, scheduled_id: int) -> ScheduledNotification | None:
        with session_scope(self._factory) as session:
            model = session.get(ScheduledNotificationModel, scheduled_id)
            return None if model is None else ScheduledNotificationRepository._to_entity(model)

    def scheduled_notifications(self) -> list[ScheduledNotification]:
        with session_scope(self._factory) as session:
            models = (
                session.query(ScheduledNotificationModel)
                .order_by(ScheduledNotificationModel.id)
                .all()
            )
            return [ScheduledNotificationRepository._to_entity(model) for model in models]

    def get_poll(self, poll_id: int) -> Poll | None:
        with session_scope(self._factory) as session:
            model = session.get(PollModel, poll_id)
            return None if model is None else PollRepository._to_entity(model)

    def votes(self, poll_id: int) -> dict[str, int]:
        with session_scope(self._factory) as session:
            rows = session.query(VoteModel.user_id, VoteModel.poll_option_id).filter(
                VoteModel.poll_id == poll_id
            )
            return {user_id: option_id for user_id, option_id in rows}


@pytest.fixture()
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture()
def file_session_factory(tmp_path):
    """Session factory over a SQLite file, where each connection is separate."""

    engine = create_database_engine(f"sqlite:///{tmp_path / 'tripsync.db'}")
    initialize_database(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def file_store(file_session_factory) -> SqlAlchemyStore:
    return SqlAlchemyStore(file_session_factory)


@pytest.fixture()
def file_seed(file_session_factory) -> Seeder:
    return Seeder(file_session_factory)
