# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path

from timeleave.exceptions import PermissionDeniedError
from timeleave.models.enums import CompanyRole
from timeleave.schemas.auth import AuthContext
from timeleave.services.authority import ensure_owner_or_admin
from timeleave.services.employee import EmployeeDirectory, get_employee_directory


async def get_auth_context(
    x_company_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: CompanyRole = Header(default=CompanyRole.EMPLOYEE),
    x_branch_id: uuid.UUID | None = Header(default=None),
    x_user_name: str = Header(default=""),
) -> AuthContext:
    """Build the identity handed over by the auth collaborator from request headers."""
    return AuthContext(
        company_id=x_company_id,
        user_id=x_user_id,
        role=x_role,
        branch_id=x_branch_id,
        display_name=x_user_name,
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require an owner or branch administrator role for the request."""
    if not auth.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def validate_company_scope(
    company_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path company_id matches the auth header company_id."""
    if company_id != auth.company_id:
        raise PermissionDeniedError("Company ID mismatch")
    return auth


DirectoryDep = Annotated[EmployeeDirectory, Depends(get_employee_directory)]


async def ensure_can_view_employee(
    auth: AuthContext,
    employee_id: uuid.UUID,
    directory: EmployeeDirectory,
) -> None:
    """Allow the employee themself, an owner, or the administrator of the employee's branch."""
    if auth.user_id == employee_id:
        return
    employee = await directory.get_employee(auth.company_id, employee_id)
    branch_id = employee.branch_id if employee is not None else None
    ensure_owner_or_admin(auth, employee_id, auth.company_id, branch_id)
