# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class SetAllocationPayload(BaseModel):
    """Request body for setting an employee's yearly vacation allocation."""

    vacation_days_total: int = Field(ge=0)


class LeaveAccountResponse(BaseModel):
    """Allocation, usage and remaining vacation days for one employee."""

    employee_id: uuid.UUID
    company_id: uuid.UUID
    vacation_days_total: int
    vacation_days_used: int
    vacation_days_remaining: int
    updated_at: datetime
