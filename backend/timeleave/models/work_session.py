# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from timeleave.models.base import ResolutionMixin, TimestampMixin, UUIDBase
from timeleave.models.enums import SessionStatus

_OPEN_SESSION = sa.text("end_time IS NULL")


class WorkSession(UUIDBase, TimestampMixin, ResolutionMixin, table=True):
    """One clock-in to clock-out interval for one employee.

    The partial unique index allows at most one open session (``end_time``
    NULL) per employee; concurrent clock-ins lose at insert time.
    """

    __tablename__ = "work_session"
    __table_args__ = (
        sa.Index(
            "uq_work_session_one_active",
            "employee_id",
            unique=True,
            postgresql_where=_OPEN_SESSION,
            sqlite_where=_OPEN_SESSION,
        ),
        sa.Index("ix_work_session_company_status", "company_id", "status"),
    )

    employee_id: uuid.UUID = Field(index=True)
    company_id: uuid.UUID = Field(index=True)
    branch_id: uuid.UUID | None = Field(default=None, index=True)
    start_time: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    end_time: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    status: str = Field(
        default=SessionStatus.ACTIVE, max_length=50, index=True, sa_column_kwargs={"server_default": "active"}
    )
    original_start_time: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    original_end_time: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    edited_start_time: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    edited_end_time: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
