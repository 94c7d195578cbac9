"""
Notification model - a message shown to one student or to everyone.

target_id holds either a student code or the literal "ALL".
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, Index
from portal.database import Base

BROADCAST_TARGET = "ALL"


class Notification(Base):
    """SQLAlchemy model for the notifications table."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(Text, nullable=True,
                  doc="Free-form category, e.g. info or alert")
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=True)
    target_id = Column(Text, nullable=False, default=BROADCAST_TARGET,
                       doc="Student code, or ALL for a broadcast")
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    __table_args__ = (
        Index("ix_notifications_target_id", "target_id"),
    )

    def __repr__(self):
        return f"<Notification(id={self.id}, target='{self.target_id}', title='{self.title}')>"
