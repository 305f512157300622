# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from timeleave.models.base import TimestampMixin, UUIDBase
from timeleave.models.enums import NotificationKind


class Notification(UUIDBase, TimestampMixin, table=True):
    """A message delivered to an employee's notification tray."""

    __tablename__ = "notification"

    employee_id: uuid.UUID = Field(index=True)
    company_id: uuid.UUID = Field(index=True)
    kind: str = Field(default=NotificationKind.INFO, max_length=20)
    title: str = Field(max_length=255)
    message: str
    is_read: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
