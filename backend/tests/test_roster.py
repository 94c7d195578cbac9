import io
import re

import pytest
from openpyxl import Workbook

from portal.errors import StoreFailure
from portal.models import School, Student
from portal.services.roster import (
    RosterFormatError, generate_student_code, import_students, read_roster_names
)

CODE_PATTERN = re.compile(r"^[A-Z]{2}-\d{4}$")


def make_workbook(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


@pytest.fixture
def school(db):
    db.add(School(id=1, name="Test School"))
    db.commit()


def test_generated_codes_have_expected_shape():
    for _ in range(50):
        assert CODE_PATTERN.match(generate_student_code())


def test_reads_names_under_any_known_header():
    content = make_workbook([
        ["Classe", "Nom Prénom"],
        ["3A", "Amina Benali"],
        ["3A", None],
        ["3B", "  Youssef Karim  "],
    ])

    assert read_roster_names(content) == ["Amina Benali", "Youssef Karim"]


def test_missing_name_column_is_rejected():
    content = make_workbook([["Classe", "Age"], ["3A", 14]])

    with pytest.raises(RosterFormatError):
        read_roster_names(content)


def test_garbage_file_is_rejected():
    with pytest.raises(RosterFormatError) as excinfo:
        read_roster_names(b"definitely not a spreadsheet")

    assert excinfo.value.message == "Unreadable spreadsheet, expected an .xlsx file"


def test_import_issues_unique_codes(db, school):
    students = import_students(db, ["Amina Benali", "Youssef Karim", "Sara Idrissi"])

    codes = [s.code for s in students]
    assert len(set(codes)) == 3
    assert all(CODE_PATTERN.match(c) for c in codes)
    assert db.query(Student).count() == 3


def test_failed_import_rolls_back_whole_batch(db, school):
    with pytest.raises(StoreFailure):
        import_students(db, ["Amina Benali", None])

    assert db.query(Student).count() == 0


def test_upload_endpoint(client, db, school):
    content = make_workbook([["Nom"], ["Amina Benali"], ["Youssef Karim"]])

    resp = client.post(
        "/upload",
        files={"file": ("eleves.xlsx", content,
                        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")}
    )

    assert resp.status_code == 200
    assert resp.json()["imported"] == 2
    names = sorted(s["name"] for s in client.get("/api/students").json())
    assert names == ["Amina Benali", "Youssef Karim"]


def test_upload_without_file(client):
    resp = client.post("/upload")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "No file received"}


def test_upload_of_bad_file(client, school):
    resp = client.post("/upload", files={"file": ("eleves.xlsx", b"nope", "application/octet-stream")})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Unreadable spreadsheet, expected an .xlsx file"}
