# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from timeleave.models.base import ResolutionMixin, TimestampMixin, UUIDBase
from timeleave.models.enums import LeaveStatus, LeaveType


class LeaveRequest(UUIDBase, TimestampMixin, ResolutionMixin, table=True):
    """An employee's application to spend vacation days over a date range."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_company_status", "company_id", "status"),
        sa.UniqueConstraint("company_id", "request_number", name="uq_leave_request_number"),
        sa.CheckConstraint("days_count >= 1", name="ck_leave_request_days_positive"),
    )

    request_number: str = Field(max_length=64)
    employee_id: uuid.UUID = Field(index=True)
    company_id: uuid.UUID = Field(index=True)
    branch_id: uuid.UUID | None = Field(default=None, index=True)
    start_date: date
    end_date: date
    days_count: int
    type: str = Field(default=LeaveType.VACATION, max_length=50)
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
