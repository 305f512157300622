# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from timeleave.models.base import now_utc


class EmployeeLeaveAccount(SQLModel, table=True):
    """Vacation allocation versus days used for one employee.

    ``vacation_days_used`` only moves through an atomic conditional increment
    issued when a leave request is approved.
    """

    __tablename__ = "employee_leave_account"
    __table_args__ = (
        sa.CheckConstraint("vacation_days_total >= 0", name="ck_leave_account_total_non_negative"),
        sa.CheckConstraint("vacation_days_used >= 0", name="ck_leave_account_used_non_negative"),
    )

    employee_id: uuid.UUID = Field(primary_key=True, sa_type=sa.Uuid)
    company_id: uuid.UUID = Field(index=True)
    vacation_days_total: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    vacation_days_used: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
