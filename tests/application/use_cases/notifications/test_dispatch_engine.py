"""Tests for promoting due scheduled notifications."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from tripsync.application.use_cases.notifications import NotificationDispatchEngine
from tripsync.infrastructure.store import StoreTransaction


@pytest.fixture()
def dispatcher(store):
    return NotificationDispatchEngine(store)


def test_due_row_is_claimed_and_delivered_once(dispatcher, seed, now):
    trip_id = seed.trip()
    scheduled_id = seed.scheduled(
        trip_id=trip_id,
        send_at=now - timedelta(minutes=5),
        user_id="bob",
        payload={"event_id": 42},
    )

    processed = dispatcher.run(now)

    assert processed == 1
    assert seed.scheduled_notification(scheduled_id).is_sent is True
    notifications = seed.notifications()
    assert len(notifications) == 1
    delivered = notifications[0]
    assert delivered.user_id == "bob"
    assert delivered.type == "EVENT_REMINDER"
    assert delivered.related_id == 42
    assert delivered.title == "Dinner soon"
    assert delivered.message == "Dinner at Time Out Market starts in one hour."
    assert delivered.payload == {"event_id": 42}
    assert delivered.is_read is False


def test_back_to_back_ticks_do_not_deliver_twice(dispatcher, seed, now):
    trip_id = seed.trip()
    seed.scheduled(trip_id=trip_id, send_at=now - timedelta(minutes=5))

    assert dispatcher.run(now) == 1
    assert dispatcher.run(now) == 0
    assert len(seed.notifications()) == 1


def test_rows_not_yet_due_are_left_alone(dispatcher, seed, now):
    trip_id = seed.trip()
    due_id = seed.scheduled(trip_id=trip_id, send_at=now)
    later_id = seed.scheduled(trip_id=trip_id, send_at=now + timedelta(seconds=1))

    assert dispatcher.run(now) == 1

    assert seed.scheduled_notification(due_id).is_sent is True
    assert seed.scheduled_notification(later_id).is_sent is False


def test_already_sent_rows_are_ignored(dispatcher, seed, now):
    trip_id = seed.trip()
    seed.scheduled(trip_id=trip_id, send_at=now - timedelta(hours=1), is_sent=True)

    assert dispatcher.run(now) == 0
    assert seed.notifications() == []


def test_batch_size_limits_a_single_tick(store, seed, now):
    trip_id = seed.trip()
    for minutes in (3, 2, 1):
        seed.scheduled(trip_id=trip_id, send_at=now - timedelta(minutes=minutes))
    dispatcher = NotificationDispatchEngine(store, batch_size=2)

    assert dispatcher.run(now) == 2
    assert dispatcher.run(now) == 1
    assert len(seed.notifications()) == 3


def test_delivery_failure_rolls_back_the_claim(dispatcher, seed, now, monkeypatch, caplog):
    trip_id = seed.trip()
    scheduled_id = seed.scheduled(trip_id=trip_id, send_at=now - timedelta(minutes=5))

    def broken_insert(self, notifications):
        raise RuntimeError("insert failed")

    with monkeypatch.context() as patch:
        patch.setattr(StoreTransaction, "bulk_insert_notifications", broken_insert)
        with caplog.at_level(logging.ERROR):
            assert dispatcher.run(now) == 0

    assert seed.scheduled_notification(scheduled_id).is_sent is False
    assert seed.notifications() == []
    assert "retrying next tick" in caplog.text

    assert dispatcher.run(now) == 1
    assert seed.scheduled_notification(scheduled_id).is_sent is True
    assert len(seed.notifications()) == 1


def test_claim_failure_aborts_the_dispatch(dispatcher, seed, now, monkeypatch):
    trip_id = seed.trip()
    scheduled_id = seed.scheduled(trip_id=trip_id, send_at=now - timedelta(minutes=5))

    def broken_claim(self, ids, now):
        raise RuntimeError("lost connection")

    monkeypatch.setattr(StoreTransaction, "claim_scheduled_notifications", broken_claim)

    assert dispatcher.run(now) == 0
    assert seed.scheduled_notification(scheduled_id).is_sent is False


def test_rows_claimed_elsewhere_are_not_delivered(dispatcher, store, seed, now, monkeypatch):
    trip_id = seed.trip()
    scheduled_id = seed.scheduled(trip_id=trip_id, send_at=now - timedelta(minutes=5))
    original_find = StoreTransaction.find_due_scheduled_notifications

    def find_then_lose_race(self, now, *, limit=None):
        due = original_find(self, now, limit=limit)
        # Another tick claims the same rows between our select and our claim.
        self.scheduled_notifications.claim([item.id for item in due], now)
        return due

    monkeypatch.setattr(StoreTransaction, "find_due_scheduled_notifications", find_then_lose_race)

    assert dispatcher.run(now) == 0
    assert seed.scheduled_notification(scheduled_id).is_sent is True
    assert seed.notifications() == []
