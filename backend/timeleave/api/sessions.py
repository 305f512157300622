# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from timeleave.api.deps import AdminDep, AuthDep, DirectoryDep, ensure_can_view_employee, validate_company_scope
from timeleave.db import SessionDep
from timeleave.schemas.session import (
    CorrectionPayload,
    WorkHistoryResponse,
    WorkSessionListResponse,
    WorkSessionResponse,
)
from timeleave.services import correction as correction_service
from timeleave.services import session_clock

sessions_router = APIRouter(
    prefix="/companies/{company_id}/sessions",
    tags=["sessions"],
    dependencies=[Depends(validate_company_scope)],
)


@sessions_router.post("/start", response_model=WorkSessionResponse)
async def start_session(session: SessionDep, auth: AuthDep) -> WorkSessionResponse:
    """Clock in. Returns the already-running session if there is one."""
    return await session_clock.start_session(session, auth.user_id, auth.company_id, auth.branch_id)


@sessions_router.post("/stop", response_model=WorkSessionResponse)
async def stop_session(session: SessionDep, auth: AuthDep) -> WorkSessionResponse:
    """Clock out of the running session."""
    return await session_clock.stop_session(session, auth.user_id)


@sessions_router.get("/active", response_model=WorkSessionResponse | None)
async def get_active_session(session: SessionDep, auth: AuthDep) -> WorkSessionResponse | None:
    """Return the caller's running session, or null."""
    return await session_clock.get_active_session(session, auth.user_id)


@sessions_router.get("", response_model=WorkSessionListResponse)
async def list_sessions(
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
) -> WorkSessionListResponse:
    """List an employee's sessions, newest first (defaults to the caller)."""
    target = employee_id or auth.user_id
    await ensure_can_view_employee(auth, target, directory)
    return await session_clock.list_sessions(session, auth.company_id, target, offset, limit)


@sessions_router.get("/history", response_model=WorkHistoryResponse)
async def work_history(
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
    employee_id: uuid.UUID | None = Query(default=None),
) -> WorkHistoryResponse:
    """Finished sessions grouped by month and day with worked minutes (defaults to the caller)."""
    target = employee_id or auth.user_id
    await ensure_can_view_employee(auth, target, directory)
    return await session_clock.work_history(session, auth.company_id, target)


@sessions_router.post("/{session_id}/correction", response_model=WorkSessionResponse)
async def propose_correction(
    session_id: uuid.UUID,
    payload: CorrectionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> WorkSessionResponse:
    """Ask an administrator to change the recorded times of a session."""
    return await correction_service.propose_correction(
        session, auth, session_id, payload.start_time, payload.end_time
    )


@sessions_router.post("/{session_id}/correction/approve", response_model=WorkSessionResponse)
async def approve_correction(session_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> WorkSessionResponse:
    """Apply a pending correction (admin only)."""
    return await correction_service.resolve_correction(session, auth, session_id, approved=True)


@sessions_router.post("/{session_id}/correction/reject", response_model=WorkSessionResponse)
async def reject_correction(session_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> WorkSessionResponse:
    """Discard a pending correction (admin only)."""
    return await correction_service.resolve_correction(session, auth, session_id, approved=False)
