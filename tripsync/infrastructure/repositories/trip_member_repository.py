"""Read access to trip membership."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from tripsync.infrastructure.models import TripMemberModel


class TripMemberRepository:
    """Resolve which users belong to a trip."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_user_ids(self, trip_id: int) -> list[str]:
        rows = (
            self.session.query(TripMemberModel.user_id)
            .filter(TripMemberModel.trip_id == trip_id)
            .order_by(TripMemberModel.id)
            .all()
        )
        return [user_id for (user_id,) in rows]

    def map_user_ids(self, trip_ids: Iterable[int]) -> dict[int, list[str]]:
        ids = {trip_id for trip_id in trip_ids if trip_id is not None}
        if not ids:
            return {}
        rows = (
            self.session.query(TripMemberModel.trip_id, TripMemberModel.user_id)
            .filter(TripMemberModel.trip_id.in_(ids))
            .order_by(TripMemberModel.id)
            .all()
        )
        members: dict[int, list[str]] = {trip_id: [] for trip_id in ids}
        for trip_id, user_id in rows:
            members[trip_id].append(user_id)
        return members


__all__ = ["TripMemberRepository"]
