"""
SQLAlchemy ORM models.

Purpose:
- Define the subscriptions table read by the reminder scheduler
- Support migrations via Alembic

Production notes:
- notify_at is indexed because every scheduler tick filters on it
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Time

from core.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base):
    """
    A daily SMS reminder.

    Columns:
    - recipient: phone number in E.164 format
    - origin_station: station code the rider departs from (e.g. "A01")
    - destination: where the rider is heading; used in the message body
    - notify_at: time of day (no date) at which the reminder fires every day
    - created_at: audit timestamp
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient = Column(String(32), nullable=False)
    origin_station = Column(String(64), nullable=False)
    destination = Column(String(128), nullable=False)
    notify_at = Column(Time, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
