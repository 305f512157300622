# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from timeleave.api.deps import AdminDep, AuthDep, DirectoryDep, ensure_can_view_employee, validate_company_scope
from timeleave.db import SessionDep
from timeleave.schemas.account import LeaveAccountResponse, SetAllocationPayload
from timeleave.services import account as account_service

accounts_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/leave-account",
    tags=["leave-accounts"],
    dependencies=[Depends(validate_company_scope)],
)


@accounts_router.get("", response_model=LeaveAccountResponse)
async def get_leave_account(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
) -> LeaveAccountResponse:
    """Vacation allocation, usage and remaining days for an employee."""
    await ensure_can_view_employee(auth, employee_id, directory)
    return await account_service.get_account(session, auth.company_id, employee_id)


@accounts_router.put("", response_model=LeaveAccountResponse)
async def set_leave_allocation(
    employee_id: uuid.UUID,
    payload: SetAllocationPayload,
    session: SessionDep,
    auth: AdminDep,
    directory: DirectoryDep,
) -> LeaveAccountResponse:
    """Set an employee's vacation allocation (admin only)."""
    await ensure_can_view_employee(auth, employee_id, directory)
    return await account_service.set_allocation(session, auth.company_id, employee_id, payload.vacation_days_total)
