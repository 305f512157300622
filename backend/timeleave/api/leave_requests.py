# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from timeleave.api.deps import AdminDep, AuthDep, validate_company_scope
from timeleave.db import SessionDep
from timeleave.exceptions import PermissionDeniedError
from timeleave.models.enums import LeaveStatus
from timeleave.schemas.leave import LeaveRequestListResponse, LeaveRequestResponse, SubmitLeavePayload
from timeleave.services import leave as leave_service
from timeleave.services.authority import resolve_branch_filter

leave_router = APIRouter(
    prefix="/companies/{company_id}/leave-requests",
    tags=["leave-requests"],
    dependencies=[Depends(validate_company_scope)],
)


@leave_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave_request(
    payload: SubmitLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Submit a leave request for the caller."""
    return await leave_service.submit_leave_request(
        session,
        auth.user_id,
        auth.company_id,
        auth.branch_id,
        payload.start_date,
        payload.end_date,
        payload.type,
    )


@leave_router.get("", response_model=LeaveRequestListResponse)
async def list_leave_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    branch_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests.

    Employees only see their own; administrators see their company or branch.
    """
    if auth.is_admin:
        branch_id = resolve_branch_filter(auth, branch_id)
    elif employee_id is not None and employee_id != auth.user_id:
        raise PermissionDeniedError("Employees can only list their own leave requests")
    else:
        employee_id = auth.user_id

    return await leave_service.list_leave_requests(
        session,
        auth.company_id,
        employee_id=employee_id,
        status_filter=status_filter,
        branch_id=branch_id,
        offset=offset,
        limit=limit,
    )


@leave_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await leave_service.get_leave_request(session, auth, request_id)


@leave_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Withdraw a pending leave request."""
    await leave_service.withdraw_leave_request(session, auth, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@leave_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveRequestResponse:
    """Approve a pending leave request and deduct its days (admin only)."""
    return await leave_service.resolve_leave_request(session, auth, request_id, approved=True)


@leave_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveRequestResponse:
    """Reject a pending leave request (admin only)."""
    return await leave_service.resolve_leave_request(session, auth, request_id, approved=False)
