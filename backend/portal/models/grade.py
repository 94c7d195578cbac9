"""
Grade model - one subject score for a student.

Grades reference the student by code rather than by id, matching how
teachers record them.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, Float, Index
from portal.database import Base


class Grade(Base):
    """SQLAlchemy model for the grades table."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_code = Column(Text, nullable=False,
                          doc="Code of the student the grade belongs to")
    subject = Column(Text, nullable=False)
    score = Column(Float, nullable=False)
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    __table_args__ = (
        Index("ix_grades_student_code", "student_code"),
    )

    def __repr__(self):
        return f"<Grade(code='{self.student_code}', subject='{self.subject}', score={self.score})>"
