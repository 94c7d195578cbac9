"""
Roster upload route - imports students from an .xlsx file.

Each named row gets a freshly generated code. The import is all-or-nothing.
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import InvalidRequest
from portal.logging_config import get_logger, log_with_context
from portal.services.roster import import_students, read_roster_names

router = APIRouter()
logger = get_logger("roster")

DEFAULT_SCHOOL_ID = 1


@router.post("/upload")
def upload_roster(file: Optional[UploadFile] = File(None), db: Session = Depends(get_db)):
    """Import the first sheet of the uploaded workbook as new students."""
    if file is None:
        raise InvalidRequest("No file received")

    content = file.file.read()
    log_with_context(logger, "INFO", "Roster upload received: {}".format(file.filename),
                     extra_data={"bytes": len(content)})

    names = read_roster_names(content)
    students = import_students(db, names, school_id=DEFAULT_SCHOOL_ID)

    return {
        "message": "Imported {} students".format(len(students)),
        "imported": len(students)
    }
