"""Vote tallying and winner selection for closing polls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from tripsync.domain.entities import PollOptionTally


@dataclass(frozen=True)
class TallyResult:
    """Outcome of counting the votes of a poll."""

    winner_id: int | None
    max_votes: int
    tied_option_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_tie(self) -> bool:
        return len(self.tied_option_ids) > 1


def tally_votes(options: Iterable[PollOptionTally]) -> TallyResult:
    """Pick the winning option among ``options``.

    The running maximum starts below zero, so options without votes still form
    a leading group. A poll whose options received no votes at all therefore
    resolves to its lowest option id instead of to "no winner". Ties are broken
    by the lowest option id. Only a poll without options has no winner.
    """

    max_votes = -1
    tied: list[int] = []
    for option in options:
        if option.vote_count > max_votes:
            max_votes = option.vote_count
            tied = [option.id]
        elif option.vote_count == max_votes:
            tied.append(option.id)

    if not tied:
        winner_id = None
    elif len(tied) == 1:
        winner_id = tied[0]
    else:
        winner_id = min(tied)

    return TallyResult(winner_id=winner_id, max_votes=max_votes, tied_option_ids=tuple(tied))


__all__ = ["TallyResult", "tally_votes"]
