"""
Access Store - persistence interface used by the access broker.

The broker never touches the database directly. It talks to an AccessStore,
which covers two concerns:
1. Identity lookups: students keyed uniquely by code
2. Access requests: one row per student holding device binding + status

SqlAccessStore is the SQLAlchemy implementation used by the API. Tests can
swap in any object implementing the same methods.

The only write that needs care is the first-login binding. It is done with a
single conditional insert ("insert unless a row exists for this student"), so
when two devices race on the same code the database picks exactly one winner.
No application-level locks are involved: requests run on independent workers
and share nothing but the database.
"""

import functools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.errors import StoreFailure
from portal.logging_config import get_logger, log_with_context
from portal.models.absence import Absence
from portal.models.access_request import AccessRequest, PENDING
from portal.models.grade import Grade
from portal.models.notification import Notification, BROADCAST_TARGET
from portal.models.student import Student

logger = get_logger("db")


@dataclass(frozen=True)
class StudentRecord:
    """Read-only view of a student identity."""
    id: int
    name: str
    code: str


@dataclass(frozen=True)
class RequestRecord:
    """Read-only view of an access request row."""
    student_id: int
    device_id: str
    status: str
    message: Optional[str]
    request_date: Optional[datetime]


class AccessStore(ABC):
    """Persistence operations the access broker depends on."""

    @abstractmethod
    def find_student_by_code(self, code: str) -> Optional[StudentRecord]:
        ...

    @abstractmethod
    def get_student(self, student_id: int) -> Optional[StudentRecord]:
        ...

    @abstractmethod
    def get_request(self, student_id: int) -> Optional[RequestRecord]:
        ...

    @abstractmethod
    def insert_request_if_absent(self, student_id: int, device_id: str) -> bool:
        """
        Atomically create a PENDING request bound to device_id.

        Returns True if this call created the row, False if a row for the
        student already existed (including one created concurrently).
        """

    @abstractmethod
    def update_status(self, student_id: int, status: str, message: Optional[str]) -> int:
        """Overwrite status and message. Returns the number of rows updated."""

    @abstractmethod
    def delete_request(self, student_id: int) -> int:
        """Delete the request row. Returns the number of rows deleted."""

    @abstractmethod
    def list_requests(self) -> List[dict]:
        """All requests joined with their student, most recent first."""

    @abstractmethod
    def list_grades(self, code: str) -> List[dict]:
        ...

    @abstractmethod
    def list_absences(self, code: str) -> List[dict]:
        ...

    @abstractmethod
    def list_notifications(self, code: str) -> List[dict]:
        ...


def _store_call(method):
    """Roll back and raise StoreFailure when the database errors out."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.db.rollback()
            log_with_context(logger, "ERROR",
                "Store operation {} failed: {}".format(method.__name__, str(e)),
                extra_data={"operation": method.__name__})
            raise StoreFailure("Database operation failed") from e
    return wrapper


def _isoformat(value):
    return value.isoformat() if value else None


class SqlAccessStore(AccessStore):
    """AccessStore backed by a SQLAlchemy session (PostgreSQL or SQLite)."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _student_record(student: Student) -> StudentRecord:
        return StudentRecord(id=student.id, name=student.name, code=student.code)

    @staticmethod
    def _request_record(request: AccessRequest) -> RequestRecord:
        return RequestRecord(
            student_id=request.student_id,
            device_id=request.device_id,
            status=request.status,
            message=request.message,
            request_date=request.request_date
        )

    @_store_call
    def find_student_by_code(self, code: str) -> Optional[StudentRecord]:
        student = self.db.query(Student).filter(Student.code == code).first()
        return self._student_record(student) if student else None

    @_store_call
    def get_student(self, student_id: int) -> Optional[StudentRecord]:
        student = self.db.query(Student).filter(Student.id == student_id).first()
        return self._student_record(student) if student else None

    @_store_call
    def get_request(self, student_id: int) -> Optional[RequestRecord]:
        # populate_existing so a row changed by another session is re-read
        request = self.db.query(AccessRequest).populate_existing().filter(
            AccessRequest.student_id == student_id
        ).first()
        return self._request_record(request) if request else None

    @_store_call
    def insert_request_if_absent(self, student_id: int, device_id: str) -> bool:
        values = {
            "student_id": student_id,
            "device_id": device_id,
            "status": PENDING,
            "message": None,
            "request_date": datetime.now(timezone.utc).replace(tzinfo=None),
        }
        dialect = self.db.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = pg_insert(AccessRequest).values(**values).on_conflict_do_nothing(
                index_elements=["student_id"])
        elif dialect == "sqlite":
            stmt = sqlite_insert(AccessRequest).values(**values).on_conflict_do_nothing(
                index_elements=["student_id"])
        else:
            return self._insert_with_savepoint(values)

        result = self.db.execute(stmt)
        self.db.commit()
        inserted = result.rowcount == 1

        log_with_context(logger, "DEBUG",
            "Conditional insert for student {}: {}".format(
                student_id, "created" if inserted else "row already present"),
            context={"student_id": student_id},
            extra_data={"dialect": dialect})
        return inserted

    @_store_call
    def _insert_with_savepoint(self, values: dict) -> bool:
        """Fallback for dialects without ON CONFLICT: rely on the primary key."""
        inserted = True
        try:
            # Leaving the block rolls back the savepoint only
            with self.db.begin_nested():
                self.db.add(AccessRequest(**values))
        except IntegrityError:
            inserted = False
        self.db.commit()
        return inserted

    @_store_call
    def update_status(self, student_id: int, status: str, message: Optional[str]) -> int:
        rows = self.db.query(AccessRequest).filter(
            AccessRequest.student_id == student_id
        ).update({"status": status, "message": message}, synchronize_session=False)
        self.db.commit()
        return rows

    @_store_call
    def delete_request(self, student_id: int) -> int:
        rows = self.db.query(AccessRequest).filter(
            AccessRequest.student_id == student_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return rows

    @_store_call
    def list_requests(self) -> List[dict]:
        rows = self.db.query(AccessRequest, Student).join(
            Student, AccessRequest.student_id == Student.id
        ).order_by(AccessRequest.request_date.desc(), AccessRequest.student_id.desc()).all()
        return [
            {
                "student_id": request.student_id,
                "name": student.name,
                "code": student.code,
                "status": request.status,
                "message": request.message,
                "request_date": _isoformat(request.request_date)
            }
            for request, student in rows
        ]

    @_store_call
    def list_grades(self, code: str) -> List[dict]:
        grades = self.db.query(Grade).filter(Grade.student_code == code).order_by(Grade.id).all()
        return [{"subject": g.subject, "score": g.score} for g in grades]

    @_store_call
    def list_absences(self, code: str) -> List[dict]:
        absences = self.db.query(Absence).filter(Absence.student_code == code).order_by(Absence.id).all()
        return [{"date": a.date, "reason": a.reason} for a in absences]

    @_store_call
    def list_notifications(self, code: str) -> List[dict]:
        notifications = self.db.query(Notification).filter(
            or_(Notification.target_id == code, Notification.target_id == BROADCAST_TARGET)
        ).order_by(Notification.id.desc()).all()
        return [
            {
                "type": n.type,
                "title": n.title,
                "message": n.message,
                "timestamp": _isoformat(n.timestamp)
            }
            for n in notifications
        ]
