# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event
from sqlmodel import Field

from timeleave.models.base import UUIDBase, now_utc


class AuditEntry(UUIDBase, table=True):
    """Immutable record of one resolution of a correction or leave request."""

    __tablename__ = "audit_entry"
    __table_args__ = (sa.Index("ix_audit_entity", "entity_type", "entity_id"),)

    company_id: uuid.UUID = Field(index=True)
    branch_id: uuid.UUID | None = None
    employee_id: uuid.UUID = Field(index=True)
    entity_type: str = Field(max_length=50)
    entity_id: uuid.UUID
    outcome: str = Field(max_length=50)
    resolver_id: uuid.UUID
    resolver_name: str = Field(max_length=255)
    resolved_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)


@event.listens_for(AuditEntry, "before_update")
def _reject_update(mapper: Any, connection: Any, target: AuditEntry) -> None:
    msg = f"Audit entry {target.id} is immutable"
    raise RuntimeError(msg)


@event.listens_for(AuditEntry, "before_delete")
def _reject_delete(mapper: Any, connection: Any, target: AuditEntry) -> None:
    msg = f"Audit entry {target.id} is immutable"
    raise RuntimeError(msg)
