"""
Roster Service - imports students from a spreadsheet and issues login codes.

Processing steps:
1. Read the first sheet of an .xlsx workbook with openpyxl
2. Locate the name column by its header (several spellings accepted)
3. Give every named row a fresh code of the form AB-1234
4. Insert all students in a single transaction; any failure rolls back the
   whole batch

Access requests are never touched here: a newly imported student simply has
no request until their first login.
"""

import io
import secrets
import string
import time
from typing import Iterable, List, Set

from openpyxl import load_workbook
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.errors import PortalError, StoreFailure
from portal.logging_config import get_logger, log_with_context
from portal.models.student import Student

logger = get_logger("roster")

NAME_HEADERS = ("nom", "name", "nom prénom", "nom prenom", "full name")
CODE_LETTERS = 2
CODE_DIGITS = 4
MAX_CODE_TRIES = 1000


class RosterFormatError(PortalError):
    """The uploaded file is not a readable roster."""

    status_code = 400


def generate_student_code() -> str:
    """Return a random code such as 'KD-0481'."""
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(CODE_LETTERS))
    digits = "".join(secrets.choice(string.digits) for _ in range(CODE_DIGITS))
    return f"{letters}-{digits}"


def _unique_code(taken: Set[str]) -> str:
    for _ in range(MAX_CODE_TRIES):
        code = generate_student_code()
        if code not in taken:
            taken.add(code)
            return code
    raise StoreFailure("Code space exhausted")


def read_roster_names(content: bytes) -> List[str]:
    """
    Extract student names from an .xlsx file.

    The first row is the header. Rows whose name cell is empty are skipped.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        # openpyxl raises a mix of zipfile, KeyError and its own errors here
        log_with_context(logger, "WARNING", "Unreadable roster upload: {}".format(e),
                         extra_data={"bytes": len(content), "error_type": type(e).__name__})
        raise RosterFormatError("Unreadable spreadsheet, expected an .xlsx file") from e

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []

        normalized = [str(h).strip().lower() if h is not None else "" for h in header]
        name_index = next((i for i, h in enumerate(normalized) if h in NAME_HEADERS), None)
        if name_index is None:
            raise RosterFormatError("No name column found (expected one of: Nom, Name, Nom Prénom)")

        names = []
        for row in rows:
            if name_index >= len(row) or row[name_index] is None:
                continue
            name = str(row[name_index]).strip()
            if name:
                names.append(name)
        return names
    finally:
        workbook.close()


def import_students(db: Session, names: Iterable[str], school_id: int = 1) -> List[Student]:
    """
    Insert one student per name, each with a new unique code.

    Runs as a single transaction: either every student is created or none.
    """
    start_time = time.time()
    names = list(names)

    try:
        taken = {code for (code,) in db.query(Student.code).all()}
        students = [
            Student(name=name, code=_unique_code(taken), school_id=school_id)
            for name in names
        ]
        db.add_all(students)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR",
            "Roster import rolled back: {}".format(str(e)),
            extra_data={"rows": len(names)})
        raise StoreFailure("Roster import failed") from e

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Imported {} students".format(len(students)),
        context={"school_id": school_id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return students
