"""
School model - the establishment a student roster belongs to.

A deployment serves a single school, created on startup with id 1.
"""

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import relationship
from portal.database import Base


class School(Base):
    """SQLAlchemy model for the schools table."""
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Unique school identifier")
    name = Column(Text, nullable=False,
                  doc="Display name of the school")

    students = relationship("Student", back_populates="school")

    def __repr__(self):
        return f"<School(id={self.id}, name='{self.name}')>"
