# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from timeleave.models.enums import AuditEntityType, ResolutionOutcome
from timeleave.schemas.leave import LeaveRequestResponse
from timeleave.schemas.session import WorkSessionResponse


class ApprovalQueueResponse(BaseModel):
    """Pending corrections and leave requests, oldest first."""

    leave_requests: list[LeaveRequestResponse]
    corrections: list[WorkSessionResponse]


class ResolvedTodayResponse(BaseModel):
    """Items resolved during the current calendar day, newest first."""

    day: date
    leave_requests: list[LeaveRequestResponse]
    corrections: list[WorkSessionResponse]


class HistoryDay(BaseModel):
    """Resolved items for one calendar day."""

    day: date
    leave_requests: list[LeaveRequestResponse]
    corrections: list[WorkSessionResponse]


class HistoryMonth(BaseModel):
    """Resolved items for one month, broken down by day (newest first)."""

    month: str  # "YYYY-MM"
    days: list[HistoryDay]


class ApprovalHistoryResponse(BaseModel):
    """Resolved items grouped by month then day."""

    months: list[HistoryMonth]


class AuditEntryResponse(BaseModel):
    """Response schema for a single audit entry."""

    id: uuid.UUID
    company_id: uuid.UUID
    branch_id: uuid.UUID | None
    employee_id: uuid.UUID
    entity_type: AuditEntityType
    entity_id: uuid.UUID
    outcome: ResolutionOutcome
    resolver_id: uuid.UUID
    resolver_name: str
    resolved_at: datetime
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None


class AuditEntryListResponse(BaseModel):
    """Paginated list of audit entries."""

    items: list[AuditEntryResponse]
    total: int
