# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from timeleave.api.deps import AdminDep, DirectoryDep, validate_company_scope
from timeleave.db import SessionDep
from timeleave.models.enums import AuditEntityType
from timeleave.schemas.approval import (
    ApprovalHistoryResponse,
    ApprovalQueueResponse,
    AuditEntryListResponse,
    ResolvedTodayResponse,
)
from timeleave.services import approval as approval_service
from timeleave.services.audit import list_audit_entries
from timeleave.services.authority import resolve_branch_filter

approvals_router = APIRouter(
    prefix="/companies/{company_id}/approvals",
    tags=["approvals"],
    dependencies=[Depends(validate_company_scope)],
)

audit_router = APIRouter(
    prefix="/companies/{company_id}/audit",
    tags=["audit"],
    dependencies=[Depends(validate_company_scope)],
)


@approvals_router.get("/pending", response_model=ApprovalQueueResponse)
async def pending_queue(
    session: SessionDep,
    auth: AdminDep,
    directory: DirectoryDep,
    branch_id: uuid.UUID | None = Query(default=None),
) -> ApprovalQueueResponse:
    """Pending leave requests and corrections awaiting a decision."""
    return await approval_service.pending_queue(session, auth, branch_id, directory)


@approvals_router.get("/resolved-today", response_model=ResolvedTodayResponse)
async def resolved_today(
    session: SessionDep,
    auth: AdminDep,
    directory: DirectoryDep,
    branch_id: uuid.UUID | None = Query(default=None),
) -> ResolvedTodayResponse:
    """Items resolved during the current calendar day."""
    return await approval_service.resolved_today(session, auth, branch_id, directory)


@approvals_router.get("/history", response_model=ApprovalHistoryResponse)
async def resolution_history(
    session: SessionDep,
    auth: AdminDep,
    directory: DirectoryDep,
    branch_id: uuid.UUID | None = Query(default=None),
) -> ApprovalHistoryResponse:
    """Earlier resolutions grouped by month and day."""
    return await approval_service.resolution_history(session, auth, branch_id, directory)


@audit_router.get("", response_model=AuditEntryListResponse)
async def query_audit_entries(
    session: SessionDep,
    auth: AdminDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    branch_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditEntryListResponse:
    """Query the resolution audit trail (admin only)."""
    return await list_audit_entries(
        session,
        auth.company_id,
        entity_type=entity_type,
        entity_id=entity_id,
        branch_id=resolve_branch_filter(auth, branch_id),
        offset=offset,
        limit=limit,
    )
