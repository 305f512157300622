# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class LeaveRequestCounter(SQLModel, table=True):
    """Last issued leave request sequence number per company and year."""

    __tablename__ = "leave_request_counter"

    company_id: uuid.UUID = Field(primary_key=True, sa_type=sa.Uuid)
    year: int = Field(primary_key=True)
    last_value: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
