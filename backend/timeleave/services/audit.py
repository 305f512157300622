from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from timeleave.models.audit import AuditEntry
from timeleave.models.enums import AuditEntityType, ResolutionOutcome
from timeleave.schemas.approval import AuditEntryListResponse, AuditEntryResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from timeleave.schemas.auth import AuthContext


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


async def record_resolution(
    session: AsyncSession,
    *,
    resolver: AuthContext,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None,
    employee_id: uuid.UUID,
    outcome: ResolutionOutcome,
    resolved_at: datetime,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditEntry:
    """Add one immutable resolution entry within the caller's transaction."""
    entry = AuditEntry(
        company_id=company_id,
        branch_id=branch_id,
        employee_id=employee_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        outcome=outcome.value,
        resolver_id=resolver.user_id,
        resolver_name=resolver.resolver_name,
        resolved_at=resolved_at,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry


def _build_audit_response(entry: AuditEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        company_id=entry.company_id,
        branch_id=entry.branch_id,
        employee_id=entry.employee_id,
        entity_type=AuditEntityType(entry.entity_type),
        entity_id=entry.entity_id,
        outcome=ResolutionOutcome(entry.outcome),
        resolver_id=entry.resolver_id,
        resolver_name=entry.resolver_name,
        resolved_at=entry.resolved_at,
        before_json=entry.before_json,
        after_json=entry.after_json,
    )


async def list_audit_entries(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    entity_type: AuditEntityType | None = None,
    entity_id: uuid.UUID | None = None,
    branch_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditEntryListResponse:
    """Query audit entries, newest first."""
    filters = [col(AuditEntry.company_id) == company_id]
    if entity_type is not None:
        filters.append(col(AuditEntry.entity_type) == entity_type.value)
    if entity_id is not None:
        filters.append(col(AuditEntry.entity_id) == entity_id)
    if branch_id is not None:
        filters.append(col(AuditEntry.branch_id) == branch_id)

    count_result = await session.execute(select(func.count()).select_from(AuditEntry).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditEntry)
        .where(*filters)
        .order_by(col(AuditEntry.resolved_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return AuditEntryListResponse(
        items=[_build_audit_response(e) for e in result.scalars().all()],
        total=total,
    )
