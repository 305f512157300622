# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from timeleave.models.enums import NotificationKind


class NotificationResponse(BaseModel):
    """Response schema for a single notification."""

    id: uuid.UUID
    employee_id: uuid.UUID
    kind: NotificationKind
    title: str
    message: str
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """An employee's notifications plus the suggested polling interval."""

    items: list[NotificationResponse]
    unread: int
    poll_after_seconds: int
