"""SQLAlchemy models for trips and their membership."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tripsync.infrastructure.database import Base
from tripsync.utils import now_in_app_naive_datetime


class TripModel(Base):
    """Database representation of a trip."""

    __tablename__ = "trip"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    members = relationship(
        "TripMemberModel",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripMemberModel.id",
    )


class TripMemberModel(Base):
    """Membership of a user in a trip."""

    __tablename__ = "trip_member"
    __table_args__ = (UniqueConstraint("trip_id", "user_id", name="uq_trip_member"),)

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(
        Integer,
        ForeignKey("trip.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False, index=True)
    joined_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    trip = relationship("TripModel", back_populates="members")


__all__ = ["TripModel", "TripMemberModel"]
