"""
Student routes - the student's own data view and the student listing.

The view trusts that the caller already logged in; what it returns depends
only on the student's access status.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.dependencies import get_broker
from portal.models.student import Student
from portal.services.access_broker import AccessBroker

router = APIRouter()


@router.get("/api/my-grades/{student_id}")
def my_grades(student_id: int, broker: AccessBroker = Depends(get_broker)):
    """Absences and notifications always; grades only once approved."""
    return broker.fetch_student_view(student_id).to_dict()


@router.get("/api/students")
def list_students(db: Session = Depends(get_db)):
    """List every imported student, newest first."""
    students = db.query(Student).order_by(Student.id.desc()).all()
    return [
        {
            "id": s.id,
            "name": s.name,
            "code": s.code,
            "school_id": s.school_id
        }
        for s in students
    ]
