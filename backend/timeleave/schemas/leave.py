# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel

from timeleave.models.enums import LeaveStatus, LeaveType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for submitting a leave request.

    The date order is checked by the ledger rather than here so that an
    inverted range surfaces as the ledger's own ValidationError.
    """

    start_date: date
    end_date: date
    type: LeaveType = LeaveType.VACATION


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    request_number: str
    employee_id: uuid.UUID
    company_id: uuid.UUID
    branch_id: uuid.UUID | None
    start_date: date
    end_date: date
    days_count: int
    type: LeaveType
    status: LeaveStatus
    created_at: datetime
    resolved_by: uuid.UUID | None
    resolved_by_name: str | None
    resolved_at: datetime | None
    employee_name: str | None = None


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int
