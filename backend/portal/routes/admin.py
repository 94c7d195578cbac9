"""
Admin routes - review access requests and decide on them.

Decisions are plain overwrites: any status can follow any other. Reset
deletes the request, which frees the code for a new device.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.dependencies import get_broker
from portal.errors import InvalidRequest
from portal.services.access_broker import AccessBroker

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class StudentAction(BaseModel):
    """Schema for approve and reset."""
    student_id: int


class RejectAction(BaseModel):
    """Schema for reject; the reason is shown to the student."""
    student_id: int
    reason: str


@router.get("/api/admin/requests")
def list_requests(broker: AccessBroker = Depends(get_broker)):
    """Every access request with its student, most recent first."""
    return broker.list_requests()


@router.post("/api/admin/approve")
def approve(action: StudentAction, broker: AccessBroker = Depends(get_broker)):
    broker.approve(action.student_id)
    return {"success": True}


@router.post("/api/admin/reject")
def reject(action: RejectAction, broker: AccessBroker = Depends(get_broker)):
    # Stored as sent; only a blank reason is refused
    if not action.reason.strip():
        raise InvalidRequest("Rejection reason cannot be empty")
    broker.reject(action.student_id, action.reason)
    return {"success": True}


@router.post("/api/admin/reset")
def reset(action: StudentAction, broker: AccessBroker = Depends(get_broker)):
    broker.reset(action.student_id)
    return {"success": True}
