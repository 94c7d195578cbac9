import os
import tempfile
from datetime import datetime

# Point the app at a throwaway database before portal.database is imported
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="portal-tests-"), "import.db")
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.database import Base, get_db
from portal.main import app
from portal.models import School, Student
from portal.models.access_request import PENDING
from portal.services.access_store import AccessStore, RequestRecord, StudentRecord


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def students(db):
    """Two imported students: Amina (AB-1234) and Youssef (CD-5678)."""
    db.add(School(id=1, name="Test School"))
    amina = Student(name="Amina Benali", code="AB-1234", school_id=1)
    youssef = Student(name="Youssef Karim", code="CD-5678", school_id=1)
    db.add_all([amina, youssef])
    db.commit()
    return {"amina": amina.id, "youssef": youssef.id}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class InMemoryAccessStore(AccessStore):
    """Dict-backed store for broker unit tests."""

    def __init__(self):
        self.students = {}
        self.requests = {}
        self.grades = {}
        self.absences = {}
        self.notifications = []
        self.writes = 0

    def add_student(self, student_id, name, code):
        self.students[student_id] = StudentRecord(id=student_id, name=name, code=code)
        return self.students[student_id]

    def find_student_by_code(self, code):
        return next((s for s in self.students.values() if s.code == code), None)

    def get_student(self, student_id):
        return self.students.get(student_id)

    def get_request(self, student_id):
        return self.requests.get(student_id)

    def insert_request_if_absent(self, student_id, device_id):
        if student_id in self.requests:
            return False
        self.writes += 1
        self.requests[student_id] = RequestRecord(
            student_id=student_id,
            device_id=device_id,
            status=PENDING,
            message=None,
            request_date=datetime(2026, 10, 1, 8, 0, len(self.requests))
        )
        return True

    def update_status(self, student_id, status, message):
        request = self.requests.get(student_id)
        if request is None:
            return 0
        self.writes += 1
        self.requests[student_id] = RequestRecord(
            student_id=student_id,
            device_id=request.device_id,
            status=status,
            message=message,
            request_date=request.request_date
        )
        return 1

    def delete_request(self, student_id):
        if self.requests.pop(student_id, None) is None:
            return 0
        self.writes += 1
        return 1

    def list_requests(self):
        rows = sorted(self.requests.values(), key=lambda r: r.request_date, reverse=True)
        return [
            {
                "student_id": r.student_id,
                "name": self.students[r.student_id].name,
                "code": self.students[r.student_id].code,
                "status": r.status,
                "message": r.message,
                "request_date": r.request_date.isoformat()
            }
            for r in rows
        ]

    def list_grades(self, code):
        return list(self.grades.get(code, []))

    def list_absences(self, code):
        return list(self.absences.get(code, []))

    def list_notifications(self, code):
        return [n for n in reversed(self.notifications) if n["target_id"] in (code, "ALL")]


@pytest.fixture
def store():
    store = InMemoryAccessStore()
    store.add_student(1, "Amina Benali", "AB-1234")
    store.add_student(2, "Youssef Karim", "CD-5678")
    return store
