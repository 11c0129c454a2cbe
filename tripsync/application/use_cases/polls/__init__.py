"""Poll closure, tallying and vote casting."""

from .closure import ClosureSummary, PollClosureEngine, completion_message
from .tally import TallyResult, tally_votes
from .votes import (
    InvalidPollOptionError,
    PollClosedError,
    PollExpiredError,
    PollNotFoundError,
    VoteNotFoundError,
    cast_vote,
    delete_vote,
)

__all__ = [
    "ClosureSummary",
    "PollClosureEngine",
    "completion_message",
    "TallyResult",
    "tally_votes",
    "InvalidPollOptionError",
    "PollClosedError",
    "PollExpiredError",
    "PollNotFoundError",
    "VoteNotFoundError",
    "cast_vote",
    "delete_vote",
]
