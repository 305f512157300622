"""Administrator read-side projections over pending and resolved items."""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from sqlalchemy import ColumnElement, select
from sqlmodel import col

from timeleave.config import get_settings
from timeleave.models.enums import LeaveStatus, SessionStatus
from timeleave.models.leave_request import LeaveRequest
from timeleave.models.work_session import WorkSession
from timeleave.schemas.approval import (
    ApprovalHistoryResponse,
    ApprovalQueueResponse,
    HistoryDay,
    HistoryMonth,
    ResolvedTodayResponse,
)
from timeleave.services.authority import resolve_branch_filter
from timeleave.services.employee import EmployeeDirectory, employee_names, get_employee_directory
from timeleave.services.leave import build_leave_response
from timeleave.services.session_clock import build_session_response, local_day

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeleave.schemas.auth import AuthContext


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _tz() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC instants bounding ``day`` in the configured calendar."""
    start = datetime.combine(day, time.min, tzinfo=_tz()).astimezone(UTC)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=_tz()).astimezone(UTC)
    return start, end


def _today(today: date | None) -> date:
    return today if today is not None else datetime.now(_tz()).date()


async def _leave_requests(
    session: AsyncSession,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None,
    *filters: ColumnElement[bool],
    order_by: ColumnElement[Any],
) -> list[LeaveRequest]:
    query = select(LeaveRequest).where(col(LeaveRequest.company_id) == company_id, *filters)
    if branch_id is not None:
        query = query.where(col(LeaveRequest.branch_id) == branch_id)
    result = await session.execute(query.order_by(order_by))
    return list(result.scalars().all())


async def _corrections(
    session: AsyncSession,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None,
    *filters: ColumnElement[bool],
    order_by: ColumnElement[Any],
) -> list[WorkSession]:
    query = select(WorkSession).where(col(WorkSession.company_id) == company_id, *filters)
    if branch_id is not None:
        query = query.where(col(WorkSession.branch_id) == branch_id)
    result = await session.execute(query.order_by(order_by))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def pending_queue(
    session: AsyncSession,
    auth: AuthContext,
    branch_id: uuid.UUID | None = None,
    directory: EmployeeDirectory | None = None,
) -> ApprovalQueueResponse:
    """Pending leave requests and corrections, oldest first."""
    branch = resolve_branch_filter(auth, branch_id)
    names = await employee_names(directory or get_employee_directory(), auth.company_id)

    leaves = await _leave_requests(
        session,
        auth.company_id,
        branch,
        col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        order_by=col(LeaveRequest.created_at).asc(),
    )
    corrections = await _corrections(
        session,
        auth.company_id,
        branch,
        col(WorkSession.status) == SessionStatus.PENDING_APPROVAL.value,
        order_by=col(WorkSession.start_time).asc(),
    )
    return ApprovalQueueResponse(
        leave_requests=[build_leave_response(r, names.get(r.employee_id)) for r in leaves],
        corrections=[build_session_response(s, names.get(s.employee_id)) for s in corrections],
    )


async def resolved_today(
    session: AsyncSession,
    auth: AuthContext,
    branch_id: uuid.UUID | None = None,
    directory: EmployeeDirectory | None = None,
    today: date | None = None,
) -> ResolvedTodayResponse:
    """Items whose resolution falls on the current calendar day, newest first."""
    branch = resolve_branch_filter(auth, branch_id)
    names = await employee_names(directory or get_employee_directory(), auth.company_id)
    day = _today(today)
    start, end = _day_bounds(day)

    leaves = await _leave_requests(
        session,
        auth.company_id,
        branch,
        col(LeaveRequest.status) != LeaveStatus.PENDING.value,
        col(LeaveRequest.resolved_at) >= start,
        col(LeaveRequest.resolved_at) < end,
        order_by=col(LeaveRequest.resolved_at).desc(),
    )
    corrections = await _corrections(
        session,
        auth.company_id,
        branch,
        col(WorkSession.status) == SessionStatus.COMPLETED.value,
        col(WorkSession.resolved_at) >= start,
        col(WorkSession.resolved_at) < end,
        order_by=col(WorkSession.resolved_at).desc(),
    )
    return ResolvedTodayResponse(
        day=day,
        leave_requests=[build_leave_response(r, names.get(r.employee_id)) for r in leaves],
        corrections=[build_session_response(s, names.get(s.employee_id)) for s in corrections],
    )


async def resolution_history(
    session: AsyncSession,
    auth: AuthContext,
    branch_id: uuid.UUID | None = None,
    directory: EmployeeDirectory | None = None,
    today: date | None = None,
) -> ApprovalHistoryResponse:
    """Items resolved before today, grouped by month then day (newest first)."""
    branch = resolve_branch_filter(auth, branch_id)
    names = await employee_names(directory or get_employee_directory(), auth.company_id)
    start_of_today, _ = _day_bounds(_today(today))

    leaves = await _leave_requests(
        session,
        auth.company_id,
        branch,
        col(LeaveRequest.status) != LeaveStatus.PENDING.value,
        col(LeaveRequest.resolved_at) < start_of_today,
        order_by=col(LeaveRequest.resolved_at).desc(),
    )
    corrections = await _corrections(
        session,
        auth.company_id,
        branch,
        col(WorkSession.status) == SessionStatus.COMPLETED.value,
        col(WorkSession.resolved_at) < start_of_today,
        order_by=col(WorkSession.resolved_at).desc(),
    )

    by_day: dict[date, HistoryDay] = {}
    for request in leaves:
        day = local_day(request.resolved_at)
        bucket = by_day.setdefault(day, HistoryDay(day=day, leave_requests=[], corrections=[]))
        bucket.leave_requests.append(build_leave_response(request, names.get(request.employee_id)))
    for work_session in corrections:
        day = local_day(work_session.resolved_at)
        bucket = by_day.setdefault(day, HistoryDay(day=day, leave_requests=[], corrections=[]))
        bucket.corrections.append(build_session_response(work_session, names.get(work_session.employee_id)))

    by_month: dict[str, list[HistoryDay]] = defaultdict(list)
    for day in sorted(by_day, reverse=True):
        by_month[f"{day.year:04d}-{day.month:02d}"].append(by_day[day])

    return ApprovalHistoryResponse(
        months=[HistoryMonth(month=month, days=days) for month, days in by_month.items()],
    )
