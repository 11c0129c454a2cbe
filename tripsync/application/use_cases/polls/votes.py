"""Vote casting guarded against polls that are closing or closed."""

from __future__ import annotations

from datetime import datetime

from tripsync.application.ports import Store
from tripsync.domain.entities import POLL_STATUS_ACTIVE, Poll, Vote
from tripsync.utils import ensure_app_timezone


class PollNotFoundError(ValueError):
    """Raised when the poll does not exist."""


class PollClosedError(ValueError):
    """Raised when the poll no longer accepts votes."""


class PollExpiredError(PollClosedError):
    """Raised when the poll is still ACTIVE but its expiry has passed."""


class InvalidPollOptionError(ValueError):
    """Raised when the option does not belong to the poll."""


class VoteNotFoundError(ValueError):
    """Raised when there is no vote to remove."""


def cast_vote(
    store: Store,
    *,
    poll_id: int,
    poll_option_id: int,
    user_id: str,
    now: datetime,
) -> Vote:
    """Record ``user_id``'s vote, replacing any earlier one on the same poll.

    The poll row stays locked from the status check until the vote is written,
    so a vote can never land on a poll the closure engine has already tallied.
    """

    with store.transaction() as tx:
        _ensure_open(tx.lock_poll(poll_id), poll_id, now)
        if not tx.poll_has_option(poll_id, poll_option_id):
            msg = f"Option {poll_option_id} does not belong to poll {poll_id}"
            raise InvalidPollOptionError(msg)
        return tx.upsert_vote(
            poll_id=poll_id,
            poll_option_id=poll_option_id,
            user_id=user_id,
            voted_at=now,
        )


def delete_vote(store: Store, *, poll_id: int, user_id: str, now: datetime) -> Vote:
    """Withdraw ``user_id``'s vote while the poll is still open."""

    with store.transaction() as tx:
        _ensure_open(tx.lock_poll(poll_id), poll_id, now)
        vote = tx.delete_vote(poll_id=poll_id, user_id=user_id)
        if vote is None:
            msg = f"User {user_id} has no vote on poll {poll_id}"
            raise VoteNotFoundError(msg)
        return vote


def _ensure_open(poll: Poll | None, poll_id: int, now: datetime) -> Poll:
    if poll is None:
        raise PollNotFoundError(f"Poll {poll_id} not found")
    if poll.status != POLL_STATUS_ACTIVE:
        raise PollClosedError(f"Poll {poll_id} is {poll.status} and cannot accept votes")
    if ensure_app_timezone(poll.expires_at) <= ensure_app_timezone(now):
        raise PollExpiredError(f"Poll {poll_id} has expired and cannot accept votes")
    return poll


__all__ = [
    "InvalidPollOptionError",
    "PollClosedError",
    "PollExpiredError",
    "PollNotFoundError",
    "VoteNotFoundError",
    "cast_vote",
    "delete_vote",
]
