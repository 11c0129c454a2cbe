"""Tests for the notification fan-out service."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from tripsync.application.use_cases.notifications import NotificationFanoutService
from tripsync.domain.entities import (
    NOTIFICATION_CHANNEL_EMAIL,
    NotificationRequest,
    TripNotification,
)
from tripsync.infrastructure.store import StoreTransaction


@pytest.fixture()
def service(store, now):
    return NotificationFanoutService(store, clock=lambda: now)


def _request(trip_id: int, **overrides) -> NotificationRequest:
    values = {
        "user_ids": ("alice", "bob"),
        "trip_id": trip_id,
        "type": "EVENT_REMINDER",
        "related_id": 7,
        "title": "Museum visit",
        "message": "The museum visit starts soon.",
        "payload": {"event_id": 7},
    }
    values.update(overrides)
    return NotificationRequest(**values)


def test_future_send_at_creates_scheduled_rows(service, seed, now):
    trip_id = seed.trip()
    send_at = now + timedelta(minutes=1)

    service.deliver(_request(trip_id, send_at=send_at, channel=NOTIFICATION_CHANNEL_EMAIL))

    scheduled = seed.scheduled_notifications()
    assert [item.user_id for item in scheduled] == ["alice", "bob"]
    for item in scheduled:
        assert item.is_sent is False
        assert item.send_at == send_at
        assert item.channel == NOTIFICATION_CHANNEL_EMAIL
        assert item.related_id == 7
        assert item.payload == {"event_id": 7}
    assert seed.notifications() == []


@pytest.mark.parametrize("offset", [None, timedelta(seconds=-1), timedelta(0)])
def test_past_or_missing_send_at_delivers_immediately(service, seed, now, offset):
    trip_id = seed.trip()
    send_at = None if offset is None else now + offset

    service.deliver(_request(trip_id, send_at=send_at))

    notifications = seed.notifications()
    assert [n.user_id for n in notifications] == ["alice", "bob"]
    for notification in notifications:
        assert notification.trip_id == trip_id
        assert notification.type == "EVENT_REMINDER"
        assert notification.is_read is False
        assert notification.created_at == now
    assert seed.scheduled_notifications() == []


def test_empty_target_set_is_a_no_op(service, seed, monkeypatch):
    trip_id = seed.trip()

    def unexpected(self, notifications):
        raise AssertionError("no insert expected")

    monkeypatch.setattr(StoreTransaction, "insert_notifications", unexpected)

    service.deliver(_request(trip_id, user_ids=()))

    assert seed.notifications() == []


def test_duplicate_targets_receive_one_notification(service, seed):
    trip_id = seed.trip()

    service.deliver(_request(trip_id, user_ids=("alice", "bob", "alice")))

    assert [n.user_id for n in seed.notifications()] == ["alice", "bob"]


def test_insert_failure_is_logged_not_raised(service, seed, monkeypatch, caplog):
    trip_id = seed.trip()

    def broken_insert(self, notifications):
        raise RuntimeError("constraint violated")

    monkeypatch.setattr(StoreTransaction, "insert_notifications", broken_insert)

    with caplog.at_level(logging.ERROR):
        service.deliver(_request(trip_id))

    assert seed.notifications() == []
    assert "Error delivering EVENT_REMINDER notification to 2 users" in caplog.text


def test_unknown_channel_is_rejected():
    with pytest.raises(ValueError):
        _request(1, channel="SMS")


def test_notify_trip_members_targets_every_member(service, seed):
    trip_id = seed.trip(members=("alice", "bob", "carol"))

    service.notify_trip_members(
        trip_id, TripNotification(type="TRIP_UPDATED", title="Trip updated", message="Dates changed.")
    )

    assert [n.user_id for n in seed.notifications()] == ["alice", "bob", "carol"]


def test_notify_trip_members_except_skips_excluded(service, seed):
    trip_id = seed.trip(members=("alice", "bob", "carol"))

    service.notify_trip_members_except(
        trip_id,
        ["alice"],
        TripNotification(type="POLL_CREATED", title="New poll", message="Vote now.", related_id=3),
    )

    notifications = seed.notifications()
    assert [n.user_id for n in notifications] == ["bob", "carol"]
    assert {n.related_id for n in notifications} == {3}


def test_notify_individual(service, seed, now):
    trip_id = seed.trip()

    service.notify_individual(
        "carol",
        trip_id,
        TripNotification(
            type="EVENT_ASSIGNMENT",
            title="New assignment",
            message="You are driving on Saturday.",
            send_at=now + timedelta(days=1),
        ),
    )

    scheduled = seed.scheduled_notifications()
    assert [item.user_id for item in scheduled] == ["carol"]


def test_member_lookup_failure_is_logged(service, seed, monkeypatch, caplog):
    trip_id = seed.trip()

    def broken_lookup(self, trip_id):
        raise RuntimeError("timeout")

    monkeypatch.setattr(StoreTransaction, "list_trip_member_ids", broken_lookup)

    with caplog.at_level(logging.ERROR):
        service.notify_trip_members(
            trip_id, TripNotification(type="TRIP_UPDATED", title="Trip updated", message="x")
        )

    assert seed.notifications() == []
    assert f"Error resolving members of trip {trip_id}" in caplog.text
