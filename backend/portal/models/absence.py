"""Absence model - a recorded absence for a student, keyed by code."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, Index
from portal.database import Base


class Absence(Base):
    """SQLAlchemy model for the absences table."""
    __tablename__ = "absences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_code = Column(Text, nullable=False,
                          doc="Code of the absent student")
    date = Column(Text, nullable=False,
                  doc="Day of the absence as entered by staff")
    reason = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    __table_args__ = (
        Index("ix_absences_student_code", "student_code"),
    )

    def __repr__(self):
        return f"<Absence(code='{self.student_code}', date='{self.date}')>"
