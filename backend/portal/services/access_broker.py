"""
Access Broker - device binding and grade visibility for student codes.

Rules:
1. First-seen device wins: the first login with a code binds that device
2. Later logins from the bound device read the current status; logins
   from any other device are refused until an admin resets the binding
3. Status decides visibility: grades are shown only when APPROVED,
   absences and notifications are always shown
4. Admins may overwrite the status freely (approve / reject) or delete the
   binding (reset)

The broker keeps no state of its own. Everything lives in the injected
AccessStore, so the broker can run on any number of workers at once.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from portal.errors import AccessRequestNotFound, StoreFailure, StudentNotFound
from portal.logging_config import get_logger, log_with_context
from portal.models.access_request import APPROVED, PENDING, REJECTED
from portal.services.access_store import AccessStore, RequestRecord, StudentRecord

logger = get_logger("access")

# A reset can delete the winning row between our failed insert and the re-read
MAX_BINDING_ATTEMPTS = 3


class LoginResult(str, Enum):
    GRANTED = "GRANTED"
    INVALID_CODE = "INVALID_CODE"
    DEVICE_MISMATCH = "DEVICE_MISMATCH"


@dataclass
class LoginOutcome:
    """Result of a login attempt. status/message are set only when granted."""
    result: LoginResult
    student: Optional[StudentRecord] = None
    status: Optional[str] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.result == LoginResult.GRANTED


@dataclass
class StudentView:
    """What a student may see right now."""
    locked: bool
    rejected: bool = False
    reject_reason: str = ""
    notifications: List[dict] = field(default_factory=list)
    absences: List[dict] = field(default_factory=list)
    grades: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "locked": self.locked,
            "rejected": self.rejected,
            "reject_reason": self.reject_reason,
            "notifications": self.notifications,
            "absences": self.absences,
            "grades": self.grades
        }


class AccessBroker:
    """Evaluates logins and applies admin decisions against an AccessStore."""

    def __init__(self, store: AccessStore):
        self.store = store

    # ── Login decision ───────────────────────────────────────

    def attempt_login(self, code: str, device_id: str) -> LoginOutcome:
        """
        Decide a login attempt for (code, device_id).

        - Unknown code: INVALID_CODE, nothing written
        - No request yet: bind device_id with status PENDING
        - Bound to the same device: current status (and rejection message)
        - Bound to another device: DEVICE_MISMATCH, nothing written
        """
        student = self.store.find_student_by_code(code)
        if student is None:
            log_with_context(logger, "INFO", "Login refused: unknown code",
                             context={"code": code})
            return LoginOutcome(LoginResult.INVALID_CODE)

        for _ in range(MAX_BINDING_ATTEMPTS):
            request = self.store.get_request(student.id)
            if request is not None:
                return self._evaluate(student, request, device_id)

            if self.store.insert_request_if_absent(student.id, device_id):
                log_with_context(logger, "INFO",
                    "Device bound for student {}".format(student.id),
                    context={"student_id": student.id, "device_id": device_id})
                return LoginOutcome(LoginResult.GRANTED, student, PENDING)

            # Lost the race: another login bound the code first.
            # Loop round and judge ourselves against the winning row.
            log_with_context(logger, "INFO",
                "Concurrent first login for student {}, re-evaluating".format(student.id),
                context={"student_id": student.id, "device_id": device_id})

        raise StoreFailure("Could not settle device binding for student {}".format(student.id))

    def _evaluate(self, student: StudentRecord, request: RequestRecord,
                  device_id: str) -> LoginOutcome:
        if request.device_id != device_id:
            log_with_context(logger, "WARNING",
                "Login refused: code bound to another device",
                context={"student_id": student.id, "device_id": device_id})
            return LoginOutcome(LoginResult.DEVICE_MISMATCH, student)

        message = request.message if request.status == REJECTED else None
        return LoginOutcome(LoginResult.GRANTED, student, request.status, message)

    # ── Visibility gate ──────────────────────────────────────

    def fetch_student_view(self, student_id: int) -> StudentView:
        """
        Build the data a student may see.

        Absences and notifications are always visible. Grades are only
        included when the request is APPROVED; a missing request counts as
        locked but not rejected.
        """
        student = self._require_student(student_id)
        request = self.store.get_request(student_id)
        status = request.status if request else None

        notifications = self.store.list_notifications(student.code)
        absences = self.store.list_absences(student.code)

        if status == APPROVED:
            return StudentView(
                locked=False,
                notifications=notifications,
                absences=absences,
                grades=self.store.list_grades(student.code)
            )

        return StudentView(
            locked=True,
            rejected=status == REJECTED,
            reject_reason=(request.message or "") if request else "",
            notifications=notifications,
            absences=absences,
            grades=[]
        )

    # ── Admin transitions ────────────────────────────────────

    def list_requests(self) -> List[dict]:
        return self.store.list_requests()

    def approve(self, student_id: int) -> None:
        """Set APPROVED and clear any rejection message."""
        self._set_status(student_id, APPROVED, None)

    def reject(self, student_id: int, reason: str) -> None:
        """Set REJECTED with reason, whatever the previous status was."""
        self._set_status(student_id, REJECTED, reason)

    def reset(self, student_id: int) -> bool:
        """
        Delete the request, releasing the device binding.

        The next login for this student binds whichever device makes it.
        Returns False when there was nothing to delete; that still counts
        as success since the student ends up unbound either way.
        """
        self._require_student(student_id)
        deleted = self.store.delete_request(student_id) > 0
        log_with_context(logger, "INFO",
            "Access reset for student {}".format(student_id),
            context={"student_id": student_id},
            extra_data={"binding_released": deleted})
        return deleted

    def _set_status(self, student_id: int, status: str, message: Optional[str]) -> None:
        self._require_student(student_id)
        if self.store.update_status(student_id, status, message) == 0:
            log_with_context(logger, "WARNING",
                "Cannot set {}: student {} has no access request".format(status, student_id),
                context={"student_id": student_id})
            raise AccessRequestNotFound("No access request for this student")

        log_with_context(logger, "INFO",
            "Access {} for student {}".format(status.lower(), student_id),
            context={"student_id": student_id},
            extra_data={"reason": message} if message else None)

    def _require_student(self, student_id: int) -> StudentRecord:
        student = self.store.get_student(student_id)
        if student is None:
            raise StudentNotFound("Student not found")
        return student
