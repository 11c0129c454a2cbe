"""Persistence layer for polls, their options and votes."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from tripsync.domain.entities import (
    POLL_STATUS_ACTIVE,
    ExpiredPoll,
    Poll,
    PollOptionTally,
    Vote,
)
from tripsync.infrastructure.models import PollModel, PollOptionModel, VoteModel
from tripsync.utils import ensure_app_naive_datetime, ensure_app_timezone


class PollRepository:
    """Provide the reads and conditional writes needed to run polls."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def lock(self, poll_id: int) -> Poll | None:
        """Return the poll with its row locked until the transaction ends."""

        model = (
            self.session.query(PollModel)
            .filter(PollModel.id == poll_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if model is None:
            return None
        return self._to_entity(model)

    def find_expired_active(self, now: datetime) -> Sequence[ExpiredPoll]:
        query = (
            self.session.query(PollModel)
            .filter(PollModel.status == POLL_STATUS_ACTIVE)
            .filter(PollModel.expires_at < ensure_app_naive_datetime(now))
            .order_by(PollModel.expires_at, PollModel.id)
        )
        return [self._to_snapshot(model) for model in query.all()]

    def lock_expired_active(self, poll_id: int, now: datetime) -> ExpiredPoll | None:
        """Lock ``poll_id`` and return a fresh tally if it still needs closing."""

        model = (
            self.session.query(PollModel)
            .filter(PollModel.id == poll_id)
            .filter(PollModel.status == POLL_STATUS_ACTIVE)
            .filter(PollModel.expires_at < ensure_app_naive_datetime(now))
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if model is None:
            return None
        return self._to_snapshot(model)

    def close_if_active(
        self,
        poll_id: int,
        *,
        status: str,
        winner_id: int | None,
        completed_at: datetime,
        now: datetime,
    ) -> bool:
        """Move an ACTIVE, expired poll to ``status``.

        Returns ``False`` when the poll was already closed or is not expired at
        write time, in which case nothing changed.
        """

        updated = (
            self.session.query(PollModel)
            .filter(
                PollModel.id == poll_id,
                PollModel.status == POLL_STATUS_ACTIVE,
                PollModel.expires_at < ensure_app_naive_datetime(now),
            )
            .update(
                {
                    PollModel.status: status,
                    PollModel.winner_id: winner_id,
                    PollModel.completed_at: ensure_app_naive_datetime(completed_at),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def list_option_tallies(self, poll_id: int) -> list[PollOptionTally]:
        rows = (
            self.session.query(
                PollOptionModel.id,
                PollOptionModel.option,
                func.count(VoteModel.id),
            )
            .outerjoin(
                VoteModel,
                and_(
                    VoteModel.poll_option_id == PollOptionModel.id,
                    VoteModel.poll_id == PollOptionModel.poll_id,
                ),
            )
            .filter(PollOptionModel.poll_id == poll_id)
            .group_by(PollOptionModel.id, PollOptionModel.option)
            .order_by(PollOptionModel.id)
            .all()
        )
        return [
            PollOptionTally(id=option_id, option=option, vote_count=int(count))
            for option_id, option, count in rows
        ]

    def has_option(self, poll_id: int, poll_option_id: int) -> bool:
        return (
            self.session.query(PollOptionModel.id)
            .filter(
                PollOptionModel.id == poll_option_id,
                PollOptionModel.poll_id == poll_id,
            )
            .first()
            is not None
        )

    def upsert_vote(
        self, *, poll_id: int, poll_option_id: int, user_id: str, voted_at: datetime
    ) -> Vote:
        model = self._get_vote_model(poll_id, user_id)
        if model is None:
            model = VoteModel(poll_id=poll_id, user_id=user_id)
            self.session.add(model)
        model.poll_option_id = poll_option_id
        model.voted_at = ensure_app_naive_datetime(voted_at)
        self.session.flush()
        return self._vote_to_entity(model)

    def delete_vote(self, *, poll_id: int, user_id: str) -> Vote | None:
        model = self._get_vote_model(poll_id, user_id)
        if model is None:
            return None
        vote = self._vote_to_entity(model)
        self.session.delete(model)
        self.session.flush()
        return vote

    def _get_vote_model(self, poll_id: int, user_id: str) -> VoteModel | None:
        return (
            self.session.query(VoteModel)
            .filter(VoteModel.poll_id == poll_id, VoteModel.user_id == user_id)
            .one_or_none()
        )

    def _to_snapshot(self, model: PollModel) -> ExpiredPoll:
        return ExpiredPoll(
            id=model.id,
            trip_id=model.trip_id,
            question=model.question,
            expires_at=ensure_app_timezone(model.expires_at),
            created_by_id=model.created_by_id,
            options=self.list_option_tallies(model.id),
        )

    @staticmethod
    def _to_entity(model: PollModel) -> Poll:
        return Poll(
            id=model.id,
            trip_id=model.trip_id,
            question=model.question,
            status=model.status,
            expires_at=ensure_app_timezone(model.expires_at),
            created_by_id=model.created_by_id,
            winner_id=model.winner_id,
            completed_at=ensure_app_timezone(model.completed_at),
            created_at=ensure_app_timezone(model.created_at),
        )

    @staticmethod
    def _vote_to_entity(model: VoteModel) -> Vote:
        return Vote(
            id=model.id,
            poll_id=model.poll_id,
            poll_option_id=model.poll_option_id,
            user_id=model.user_id,
            voted_at=ensure_app_timezone(model.voted_at),
        )


__all__ = ["PollRepository"]
