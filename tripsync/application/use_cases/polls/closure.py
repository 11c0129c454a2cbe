"""Closing of expired polls and announcement of their outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from tripsync.application.ports import Store
from tripsync.application.use_cases.notifications.fanout import NotificationFanoutService
from tripsync.domain.entities import (
    NOTIFICATION_TYPE_POLL_COMPLETED,
    POLL_STATUS_COMPLETED,
    ExpiredPoll,
    NotificationRequest,
)

from .tally import TallyResult, tally_votes

logger = logging.getLogger(__name__)

POLL_COMPLETED_TITLE = "Poll Completed"


@dataclass
class ClosureSummary:
    """Counters describing one pass of the closure engine."""

    closed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class PollClosureEngine:
    """Close every ACTIVE poll whose expiry has passed.

    Each poll is handled in its own transaction: the poll row is locked and
    re-read, its votes are tallied, and the transition to COMPLETED only applies
    while the poll is still ACTIVE. Members of the trip are notified after the
    transition is committed.
    """

    def __init__(self, store: Store, fanout: NotificationFanoutService) -> None:
        self._store = store
        self._fanout = fanout

    def run(self, now: datetime) -> ClosureSummary:
        summary = ClosureSummary()
        try:
            with self._store.transaction() as tx:
                candidates = tx.find_expired_active_polls(now)
        except Exception:
            logger.exception("Could not load expired polls; retrying next tick")
            return summary

        for candidate in candidates:
            try:
                closed = self._close(candidate.id, now)
            except Exception:
                logger.exception("Failed to close poll %s", candidate.id)
                summary.failed.append(candidate.id)
                continue
            if closed:
                summary.closed.append(candidate.id)
            else:
                summary.skipped.append(candidate.id)

        if candidates:
            logger.info(
                "Closed %s expired polls (%s skipped, %s failed)",
                len(summary.closed),
                len(summary.skipped),
                len(summary.failed),
            )
        return summary

    def _close(self, poll_id: int, now: datetime) -> bool:
        with self._store.transaction() as tx:
            poll = tx.lock_expired_active_poll(poll_id, now)
            if poll is None:
                logger.warning("Poll %s is no longer active; skipping", poll_id)
                return False
            result = tally_votes(poll.options)
            applied = tx.close_poll_if_active(
                poll.id,
                status=POLL_STATUS_COMPLETED,
                winner_id=result.winner_id,
                completed_at=now,
            )
        if not applied:
            logger.warning("Poll %s was closed concurrently; skipping", poll_id)
            return False

        if result.is_tie:
            logger.info(
                "Poll %s tied between options %s; lowest option id wins",
                poll.id,
                list(result.tied_option_ids),
            )
        logger.info("Poll %s expired and completed. Winner option id: %s", poll.id, result.winner_id)
        self._fanout.deliver(
            NotificationRequest(
                user_ids=tuple(poll.member_user_ids),
                trip_id=poll.trip_id,
                type=NOTIFICATION_TYPE_POLL_COMPLETED,
                related_id=poll.id,
                title=POLL_COMPLETED_TITLE,
                message=completion_message(poll, result),
                payload={"poll_id": poll.id, "winner_id": result.winner_id},
            )
        )
        return True


def completion_message(poll: ExpiredPoll, result: TallyResult) -> str:
    winner = poll.option_text(result.winner_id)
    if winner is None:
        return f'Poll "{poll.question}" has ended with no votes.'
    return f'Poll "{poll.question}" has been completed. The winning option is "{winner}".'


__all__ = ["ClosureSummary", "PollClosureEngine", "completion_message"]
