# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, model_validator

from timeleave.models.base import as_utc
from timeleave.models.enums import SessionStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CorrectionPayload(BaseModel):
    """Request body for proposing new start/end times for a session."""

    start_time: datetime
    end_time: datetime | None = None

    @model_validator(mode="after")
    def _validate_times(self) -> Self:
        if self.end_time is not None and as_utc(self.end_time) <= as_utc(self.start_time):
            msg = "end_time must be after start_time"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WorkSessionResponse(BaseModel):
    """Response schema for a single work session."""

    id: uuid.UUID
    employee_id: uuid.UUID
    company_id: uuid.UUID
    branch_id: uuid.UUID | None
    start_time: datetime
    end_time: datetime | None
    status: SessionStatus
    original_start_time: datetime | None
    original_end_time: datetime | None
    edited_start_time: datetime | None
    edited_end_time: datetime | None
    resolved_by: uuid.UUID | None
    resolved_by_name: str | None
    resolved_at: datetime | None
    created_at: datetime
    worked_minutes: int | None = None  # None while the session is running
    employee_name: str | None = None


class WorkSessionListResponse(BaseModel):
    """List of work sessions, newest first."""

    items: list[WorkSessionResponse]
    total: int


class WorkHistoryDay(BaseModel):
    """Finished sessions started on one calendar day, with the day's total."""

    day: date
    total_minutes: int
    sessions: list[WorkSessionResponse]


class WorkHistoryMonth(BaseModel):
    """One month of an employee's work history, newest day first."""

    month: str  # "YYYY-MM"
    total_minutes: int
    days: list[WorkHistoryDay]


class WorkHistoryResponse(BaseModel):
    """Finished sessions grouped by month then day."""

    months: list[WorkHistoryMonth]
