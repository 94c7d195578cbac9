"""
Student model - the identity a login code resolves to.

Students are created by roster import and never mutated afterwards.
The code is the external-facing credential and is unique across the
whole table.
"""

from sqlalchemy import Column, Integer, Text, String, ForeignKey
from sqlalchemy.orm import relationship
from portal.database import Base


class Student(Base):
    """
    SQLAlchemy model for the students table.

    Each student owns at most one AccessRequest (see access_request.py),
    which records the device the code is bound to.
    """
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Unique student identifier")
    name = Column(Text, nullable=False,
                  doc="Student's full name as read from the roster")
    code = Column(String(16), nullable=False, unique=True,
                  doc="Login code issued at import, e.g. AB-1234")
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True,
                       doc="School the student was imported into")

    school = relationship("School", back_populates="students")
    access_request = relationship("AccessRequest", back_populates="student",
                                  uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}', code='{self.code}')>"
