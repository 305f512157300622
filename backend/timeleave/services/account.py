# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from timeleave.db import commit_or_raise
from timeleave.exceptions import InsufficientBalanceError, NotFoundError, ValidationError
from timeleave.models.account import EmployeeLeaveAccount
from timeleave.schemas.account import LeaveAccountResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def build_account_response(account: EmployeeLeaveAccount) -> LeaveAccountResponse:
    """Map a leave account model to its response schema."""
    return LeaveAccountResponse(
        employee_id=account.employee_id,
        company_id=account.company_id,
        vacation_days_total=account.vacation_days_total,
        vacation_days_used=account.vacation_days_used,
        vacation_days_remaining=account.vacation_days_total - account.vacation_days_used,
        updated_at=account.updated_at,
    )


async def load_account(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> EmployeeLeaveAccount:
    """Read the account straight from the store, bypassing the identity map."""
    result = await session.execute(
        select(EmployeeLeaveAccount)
        .where(
            col(EmployeeLeaveAccount.employee_id) == employee_id,
            col(EmployeeLeaveAccount.company_id) == company_id,
        )
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError("Leave account not found for employee")
    return account


async def consume_vacation_days(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    days: int,
) -> int:
    """Atomically add ``days`` to the used counter if the balance still allows it.

    A single conditional UPDATE both re-validates against the persisted value
    and increments it, so two concurrent approvals cannot overspend. Returns
    the new used total.
    """
    if days < 1:
        raise ValidationError("Days to consume must be positive")

    result = await session.execute(
        update(EmployeeLeaveAccount)
        .where(
            col(EmployeeLeaveAccount.employee_id) == employee_id,
            col(EmployeeLeaveAccount.company_id) == company_id,
            col(EmployeeLeaveAccount.vacation_days_used) + days <= col(EmployeeLeaveAccount.vacation_days_total),
        )
        .values(
            vacation_days_used=col(EmployeeLeaveAccount.vacation_days_used) + days,
            version=col(EmployeeLeaveAccount.version) + 1,
        )
        .returning(col(EmployeeLeaveAccount.vacation_days_used))
        .execution_options(synchronize_session=False)
    )
    new_used = result.scalar_one_or_none()
    if new_used is None:
        account = await load_account(session, company_id, employee_id)
        remaining = account.vacation_days_total - account.vacation_days_used
        raise InsufficientBalanceError(
            f"Request needs {days} days but only {remaining} remain",
        )
    return int(new_used)


async def get_account(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> LeaveAccountResponse:
    """Get an employee's vacation allocation and usage."""
    return build_account_response(await load_account(session, company_id, employee_id))


async def set_allocation(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    vacation_days_total: int,
) -> LeaveAccountResponse:
    """Create the account or change its yearly allocation.

    The allocation may not drop below the days already used.
    """
    if vacation_days_total < 0:
        raise ValidationError("Vacation allocation cannot be negative")

    result = await session.execute(
        select(EmployeeLeaveAccount)
        .where(col(EmployeeLeaveAccount.employee_id) == employee_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if account is None:
        account = EmployeeLeaveAccount(
            employee_id=employee_id,
            company_id=company_id,
            vacation_days_total=vacation_days_total,
        )
        session.add(account)
    else:
        if account.company_id != company_id:
            raise NotFoundError("Leave account not found for employee")
        if vacation_days_total < account.vacation_days_used:
            raise ValidationError(
                f"Allocation cannot be lower than the {account.vacation_days_used} days already used",
            )
        account.vacation_days_total = vacation_days_total
        account.version += 1

    await commit_or_raise(session)
    await session.refresh(account)
    logger.info(
        "leave_allocation_set",
        extra={"extra": {"employee_id": str(employee_id), "vacation_days_total": vacation_days_total}},
    )
    return build_account_response(account)
