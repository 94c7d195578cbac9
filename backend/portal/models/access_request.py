"""
AccessRequest model - the device binding and admin decision for a student.

There is at most one row per student (student_id is the primary key).
The row is created on the student's first login, which binds the device
that made it. Admin decisions only touch status and message; an admin
reset deletes the row, which is the only way to bind another device.

Statuses:
- PENDING: created by first login, awaiting an admin decision
- APPROVED: grades are visible
- REJECTED: grades stay hidden, message holds the reason
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from portal.database import Base

PENDING = "PENDING"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

STATUSES = (PENDING, APPROVED, REJECTED)


class AccessRequest(Base):
    """SQLAlchemy model for the access_requests table."""
    __tablename__ = "access_requests"

    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True,
                        autoincrement=False,
                        doc="Student this request belongs to (one row per student)")
    device_id = Column(String(255), nullable=False,
                       doc="Device bound on first login, never overwritten")
    status = Column(Text, nullable=False, default=PENDING,
                    doc="PENDING | APPROVED | REJECTED")
    message = Column(Text, nullable=True,
                     doc="Rejection reason, cleared on approval")
    request_date = Column(DateTime, nullable=False,
                          default=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
                          doc="When the device was first bound")

    student = relationship("Student", back_populates="access_request")

    __table_args__ = (
        Index("ix_access_requests_request_date", "request_date"),
    )

    def __repr__(self):
        return f"<AccessRequest(student={self.student_id}, device='{self.device_id}', status='{self.status}')>"
