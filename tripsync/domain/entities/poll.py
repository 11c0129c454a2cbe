"""Domain entities describing trip polls and their votes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

POLL_STATUS_ACTIVE = "ACTIVE"
POLL_STATUS_COMPLETED = "COMPLETED"
# Part of the data model but never written by the closure path.
POLL_STATUS_TIE = "TIE"
POLL_STATUSES = (POLL_STATUS_ACTIVE, POLL_STATUS_COMPLETED, POLL_STATUS_TIE)


@dataclass
class Poll:
    """Question asked to the members of a trip."""

    id: int | None
    trip_id: int
    question: str
    status: str
    expires_at: datetime
    created_by_id: str
    winner_id: int | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class Vote:
    """The single live vote of ``user_id`` on ``poll_id``."""

    id: int | None
    poll_id: int
    poll_option_id: int
    user_id: str
    voted_at: datetime | None = None


@dataclass(frozen=True)
class PollOptionTally:
    """A poll option together with the number of votes referencing it."""

    id: int
    option: str
    vote_count: int


@dataclass
class ExpiredPoll:
    """Snapshot of an ACTIVE poll past its expiry, ready to be closed."""

    id: int
    trip_id: int
    question: str
    expires_at: datetime
    created_by_id: str
    options: list[PollOptionTally] = field(default_factory=list)
    member_user_ids: list[str] = field(default_factory=list)

    def option_text(self, option_id: int | None) -> str | None:
        for option in self.options:
            if option.id == option_id:
                return option.option
        return None


__all__ = [
    "POLL_STATUS_ACTIVE",
    "POLL_STATUS_COMPLETED",
    "POLL_STATUS_TIE",
    "POLL_STATUSES",
    "ExpiredPoll",
    "Poll",
    "PollOptionTally",
    "Vote",
]
