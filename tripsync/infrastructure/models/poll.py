"""SQLAlchemy models for polls, their options and votes."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from tripsync.domain.entities import POLL_STATUS_ACTIVE
from tripsync.infrastructure.database import Base
from tripsync.utils import now_in_app_naive_datetime


class PollModel(Base):
    """Database representation of a trip poll."""

    __tablename__ = "poll"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(
        Integer,
        ForeignKey("trip.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=POLL_STATUS_ACTIVE, index=True)
    expires_at = Column(DateTime(), nullable=False, index=True)
    created_by_id = Column(String(64), nullable=False)
    winner_id = Column(
        Integer,
        ForeignKey(
            "poll_option.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_poll_winner_id",
        ),
        nullable=True,
    )
    completed_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    options = relationship(
        "PollOptionModel",
        back_populates="poll",
        foreign_keys="PollOptionModel.poll_id",
        cascade="all, delete-orphan",
        order_by="PollOptionModel.id",
    )


class PollOptionModel(Base):
    """Answer offered by a poll."""

    __tablename__ = "poll_option"

    id = Column(Integer, primary_key=True, index=True)
    poll_id = Column(
        Integer,
        ForeignKey("poll.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option = Column(String(255), nullable=False)

    poll = relationship("PollModel", back_populates="options", foreign_keys=[poll_id])


class VoteModel(Base):
    """The live vote of a user on a poll."""

    __tablename__ = "vote"
    __table_args__ = (UniqueConstraint("poll_id", "user_id", name="uq_vote_poll_user"),)

    id = Column(Integer, primary_key=True, index=True)
    poll_id = Column(
        Integer,
        ForeignKey("poll.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    poll_option_id = Column(
        Integer,
        ForeignKey("poll_option.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False)
    voted_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["PollModel", "PollOptionModel", "VoteModel"]
