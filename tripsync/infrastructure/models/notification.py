"""SQLAlchemy models for delivered and scheduled notifications."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    false,
)

from tripsync.domain.entities import NOTIFICATION_CHANNEL_IN_APP
from tripsync.infrastructure.database import Base
from tripsync.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trip.id", ondelete="CASCADE"), nullable=True, index=True)
    type = Column(String(50), nullable=False)
    related_id = Column(Integer, nullable=True)
    title = Column(String(120), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    read_at = Column(DateTime(), nullable=True)


class ScheduledNotificationModel(Base):
    """Notification held back until ``send_at``."""

    __tablename__ = "scheduled_notification"
    __table_args__ = (
        Index("ix_scheduled_notification_due", "is_sent", "send_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    related_id = Column(Integer, nullable=True, index=True)
    title = Column(String(120), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)
    channel = Column(String(10), nullable=False, default=NOTIFICATION_CHANNEL_IN_APP)
    send_at = Column(DateTime(), nullable=False)
    is_sent = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["NotificationModel", "ScheduledNotificationModel"]
