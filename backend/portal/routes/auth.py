"""
Login route - binds a student code to a device and reports its status.

The first login with a code binds the calling device. Afterwards only that
device can log in with the code until an admin resets it.
"""

import time
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from portal.dependencies import get_broker
from portal.errors import DeviceConflict, StudentNotFound
from portal.logging_config import get_logger, log_with_context
from portal.services.access_broker import AccessBroker, LoginResult

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class LoginRequest(BaseModel):
    """Schema for a login attempt."""
    code: str = Field(..., min_length=1, description="Student code, e.g. AB-1234")
    device_id: str = Field(..., min_length=1, max_length=255,
                           description="Opaque identifier generated by the client device")


@router.post("/api/login")
def login(request: LoginRequest, broker: AccessBroker = Depends(get_broker)):
    """
    Attempt a login with (code, device_id).

    Returns the student and their current access status on success.
    Unknown codes answer 404, codes bound to another device answer 409;
    both use the {success: false, message} body.
    """
    start_time = time.time()
    outcome = broker.attempt_login(request.code, request.device_id)

    if outcome.result == LoginResult.INVALID_CODE:
        raise StudentNotFound("Incorrect student code")
    if outcome.result == LoginResult.DEVICE_MISMATCH:
        raise DeviceConflict("This code is already linked to another device")

    student = {
        "id": outcome.student.id,
        "full_name": outcome.student.name,
        "secret_code": outcome.student.code,
        "status": outcome.status
    }
    if outcome.message is not None:
        student["message"] = outcome.message

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Login granted for student {} ({})".format(outcome.student.id, outcome.status),
        context={"student_id": outcome.student.id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    return {"success": True, "student": student}
