"""Vacation ledger: leave request submission, withdrawal and resolution.

Approving a request is the only path that increments an employee's used
vacation days, and it does so exactly once per request.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeleave.db import commit_or_raise
from timeleave.exceptions import ConflictError, InsufficientBalanceError, NotFoundError, ValidationError
from timeleave.models.base import as_utc, now_utc
from timeleave.models.enums import (
    AuditEntityType,
    LeaveStatus,
    LeaveType,
    NotificationKind,
    ResolutionOutcome,
)
from timeleave.models.leave_request import LeaveRequest
from timeleave.schemas.leave import LeaveRequestListResponse, LeaveRequestResponse
from timeleave.services.account import consume_vacation_days, load_account
from timeleave.services.audit import model_to_audit_dict, record_resolution
from timeleave.services.authority import ensure_can_resolve, ensure_owner_or_admin
from timeleave.services.notification import get_notification_dispatcher
from timeleave.services.numbering import next_request_number

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeleave.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def inclusive_day_span(start_date: date, end_date: date) -> int:
    """Number of calendar days from ``start_date`` to ``end_date`` inclusive."""
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    return (end_date - start_date).days + 1


def build_leave_response(request: LeaveRequest, employee_name: str | None = None) -> LeaveRequestResponse:
    """Map a leave request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        request_number=request.request_number,
        employee_id=request.employee_id,
        company_id=request.company_id,
        branch_id=request.branch_id,
        start_date=request.start_date,
        end_date=request.end_date,
        days_count=request.days_count,
        type=LeaveType(request.type),
        status=LeaveStatus(request.status),
        created_at=request.created_at,
        resolved_by=request.resolved_by,
        resolved_by_name=request.resolved_by_name,
        resolved_at=request.resolved_at,
        employee_name=employee_name,
    )


async def _get_request_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a leave request by ID scoped to company. Raises 404 if not found."""
    query = (
        select(LeaveRequest)
        .where(col(LeaveRequest.id) == request_id, col(LeaveRequest.company_id) == company_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_leave_request(
    session: AsyncSession,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None,
    start_date: date,
    end_date: date,
    leave_type: LeaveType = LeaveType.VACATION,
    *,
    now: datetime | None = None,
) -> LeaveRequestResponse:
    """Submit a pending leave request.

    Flow:
    1. Validate the date range and compute the inclusive day count.
    2. Re-read the employee's account and check the remaining balance.
    3. Reserve the next request number from the atomic counter.
    4. Persist the request as pending and commit.

    Nothing is deducted until the request is approved.
    """
    days_count = inclusive_day_span(start_date, end_date)

    account = await load_account(session, company_id, employee_id)
    remaining = account.vacation_days_total - account.vacation_days_used
    if days_count > remaining:
        raise InsufficientBalanceError(f"Request needs {days_count} days but only {remaining} remain")

    created_at = as_utc(now) if now is not None else now_utc()
    request_number = await next_request_number(session, company_id, created_at.year)

    leave_request = LeaveRequest(
        request_number=request_number,
        employee_id=employee_id,
        company_id=company_id,
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        days_count=days_count,
        type=leave_type.value,
        status=LeaveStatus.PENDING.value,
        created_at=created_at,
    )
    session.add(leave_request)
    await commit_or_raise(session)

    logger.info(
        "leave_submitted",
        extra={
            "extra": {
                "request_number": request_number,
                "employee_id": str(employee_id),
                "days_count": days_count,
            }
        },
    )
    return build_leave_response(leave_request)


async def withdraw_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> None:
    """Delete a still-pending request. No balance was deducted, so none is restored."""
    leave_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    ensure_owner_or_admin(auth, leave_request.employee_id, leave_request.company_id, leave_request.branch_id)

    if leave_request.status != LeaveStatus.PENDING.value:
        raise ConflictError("Only pending requests can be withdrawn", code="not_pending")

    await session.delete(leave_request)
    await commit_or_raise(session)
    logger.info(
        "leave_withdrawn",
        extra={"extra": {"request_number": leave_request.request_number, "user_id": str(auth.user_id)}},
    )


async def resolve_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    approved: bool,
    *,
    now: datetime | None = None,
) -> LeaveRequestResponse:
    """Approve or reject a pending request (administrators only).

    Flow:
    1. Lock the request and check the caller's administrative scope.
    2. Require status pending (guards double resolution).
    3. When approving, atomically consume the days; if the current balance
       no longer covers them the request stays pending.
    4. Stamp the resolver, write one audit entry and one notification.
    5. Commit.
    """
    leave_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    ensure_can_resolve(auth, leave_request.company_id, leave_request.branch_id)

    if leave_request.status != LeaveStatus.PENDING.value:
        raise ConflictError("Leave request has already been resolved", code="not_pending")

    before_dict = model_to_audit_dict(leave_request)

    if approved:
        try:
            await consume_vacation_days(
                session, leave_request.company_id, leave_request.employee_id, leave_request.days_count
            )
        except InsufficientBalanceError:
            # Logged before the rollback, which expires the loaded request.
            logger.warning(
                "leave_approval_insufficient_balance",
                extra={"extra": {"request_number": leave_request.request_number}},
            )
            await session.rollback()
            raise

    resolved_at = as_utc(now) if now is not None else now_utc()
    outcome = ResolutionOutcome.APPROVED if approved else ResolutionOutcome.REJECTED

    leave_request.status = LeaveStatus.APPROVED.value if approved else LeaveStatus.REJECTED.value
    leave_request.resolved_by = auth.user_id
    leave_request.resolved_by_name = auth.resolver_name
    leave_request.resolved_at = resolved_at

    await session.flush()

    await record_resolution(
        session,
        resolver=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave_request.id,
        company_id=leave_request.company_id,
        branch_id=leave_request.branch_id,
        employee_id=leave_request.employee_id,
        outcome=outcome,
        resolved_at=resolved_at,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await get_notification_dispatcher().notify(
        session,
        employee_id=leave_request.employee_id,
        company_id=leave_request.company_id,
        kind=NotificationKind.SUCCESS if approved else NotificationKind.ERROR,
        title="Leave request approved" if approved else "Leave request rejected",
        message=(
            f"Your leave request {leave_request.request_number} "
            f"({leave_request.days_count} days from {leave_request.start_date.isoformat()}) was {outcome.value}."
        ),
    )

    await commit_or_raise(session)

    logger.info(
        "leave_resolved",
        extra={
            "extra": {
                "request_number": leave_request.request_number,
                "outcome": outcome.value,
                "resolver_id": str(auth.user_id),
            }
        },
    )
    return build_leave_response(leave_request)


async def get_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single leave request visible to the caller."""
    leave_request = await _get_request_or_404(session, auth.company_id, request_id)
    ensure_owner_or_admin(auth, leave_request.employee_id, leave_request.company_id, leave_request.branch_id)
    return build_leave_response(leave_request)


async def list_leave_requests(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    employee_id: uuid.UUID | None = None,
    status_filter: LeaveStatus | None = None,
    branch_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List leave requests with optional filters, ordered by created_at DESC."""
    base_filters = [col(LeaveRequest.company_id) == company_id]

    if employee_id is not None:
        base_filters.append(col(LeaveRequest.employee_id) == employee_id)
    if status_filter is not None:
        base_filters.append(col(LeaveRequest.status) == status_filter.value)
    if branch_id is not None:
        base_filters.append(col(LeaveRequest.branch_id) == branch_id)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return LeaveRequestListResponse(
        items=[build_leave_response(r) for r in result.scalars().all()],
        total=total,
    )
