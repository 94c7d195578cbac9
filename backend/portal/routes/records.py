"""
Record routes - staff entry of grades, absences and notifications.

These are plain inserts. Grades and absences name the student by code,
notifications target a code or ALL.
"""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.logging_config import get_logger, log_with_context
from portal.models.absence import Absence
from portal.models.grade import Grade
from portal.models.notification import Notification, BROADCAST_TARGET

router = APIRouter()
db_logger = get_logger("db")


# ── Pydantic schemas ─────────────────────────────────────────

class GradeCreate(BaseModel):
    student_id: str = Field(..., min_length=1, description="Student code")
    subject: str = Field(..., min_length=1)
    score: float


class AbsenceCreate(BaseModel):
    student_id: str = Field(..., min_length=1, description="Student code")
    date: str = Field(..., min_length=1)
    reason: Optional[str] = None


class NotificationCreate(BaseModel):
    type: Optional[str] = None
    title: str = Field(..., min_length=1)
    message: Optional[str] = None
    target_id: str = Field(BROADCAST_TARGET, description="Student code or ALL")


def _save(db: Session, record, kind: str, context: dict):
    db.add(record)
    db.commit()
    log_with_context(db_logger, "INFO", "Recorded {}".format(kind), context=context)
    return {"message": "OK"}


@router.post("/api/grades")
def add_grade(payload: GradeCreate, db: Session = Depends(get_db)):
    grade = Grade(student_code=payload.student_id, subject=payload.subject, score=payload.score)
    return _save(db, grade, "grade", {"code": payload.student_id})


@router.post("/api/absences")
def add_absence(payload: AbsenceCreate, db: Session = Depends(get_db)):
    absence = Absence(student_code=payload.student_id, date=payload.date, reason=payload.reason)
    return _save(db, absence, "absence", {"code": payload.student_id})


@router.post("/api/notifications")
def add_notification(payload: NotificationCreate, db: Session = Depends(get_db)):
    notification = Notification(
        type=payload.type,
        title=payload.title,
        message=payload.message,
        target_id=payload.target_id
    )
    return _save(db, notification, "notification", {"target_id": payload.target_id})
