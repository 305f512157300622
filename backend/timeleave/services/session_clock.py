"""Clock-in/clock-out timer: at most one open work session per employee."""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col

from timeleave.config import get_settings
from timeleave.db import commit_or_raise
from timeleave.exceptions import NotFoundError, PersistenceError
from timeleave.models.base import as_utc, now_utc
from timeleave.models.enums import SessionStatus
from timeleave.models.work_session import WorkSession
from timeleave.schemas.session import (
    WorkHistoryDay,
    WorkHistoryMonth,
    WorkHistoryResponse,
    WorkSessionListResponse,
    WorkSessionResponse,
)
from timeleave.services.events import SessionUpdated, get_event_bus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def worked_minutes(start_time: datetime, end_time: datetime | None) -> int | None:
    """Whole minutes between clock-in and clock-out; None while running."""
    if end_time is None:
        return None
    return max(int((as_utc(end_time) - as_utc(start_time)).total_seconds() // 60), 0)


def local_day(value: datetime) -> date:
    """Calendar day of an instant in the configured timezone."""
    return as_utc(value).astimezone(ZoneInfo(get_settings().timezone)).date()


def build_session_response(work_session: WorkSession, employee_name: str | None = None) -> WorkSessionResponse:
    """Map a work session model to its response schema."""
    return WorkSessionResponse(
        id=work_session.id,
        employee_id=work_session.employee_id,
        company_id=work_session.company_id,
        branch_id=work_session.branch_id,
        start_time=work_session.start_time,
        end_time=work_session.end_time,
        status=SessionStatus(work_session.status),
        original_start_time=work_session.original_start_time,
        original_end_time=work_session.original_end_time,
        edited_start_time=work_session.edited_start_time,
        edited_end_time=work_session.edited_end_time,
        resolved_by=work_session.resolved_by,
        resolved_by_name=work_session.resolved_by_name,
        resolved_at=work_session.resolved_at,
        created_at=work_session.created_at,
        worked_minutes=worked_minutes(work_session.start_time, work_session.end_time),
        employee_name=employee_name,
    )


async def _load_active(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> WorkSession | None:
    query = (
        select(WorkSession)
        .where(col(WorkSession.employee_id) == employee_id, col(WorkSession.end_time).is_(None))
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def publish_session_event(work_session: WorkSession, reason: str) -> None:
    """Notify session-updated subscribers about a committed change."""
    await get_event_bus().publish(
        SessionUpdated(
            session_id=work_session.id,
            employee_id=work_session.employee_id,
            company_id=work_session.company_id,
            status=work_session.status,
            reason=reason,
        )
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def start_session(
    session: AsyncSession,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None = None,
    *,
    now: datetime | None = None,
) -> WorkSessionResponse:
    """Clock the employee in.

    Idempotent: an already-open session is returned unchanged. The existence
    check alone cannot stop two concurrent clock-ins, so the insert relies on
    the ``uq_work_session_one_active`` partial unique index and a losing
    insert returns the winner's session.
    """
    active = await _load_active(session, employee_id)
    if active is not None:
        logger.info(
            "session_start_noop",
            extra={"extra": {"employee_id": str(employee_id), "session_id": str(active.id)}},
        )
        return build_session_response(active)

    work_session = WorkSession(
        employee_id=employee_id,
        company_id=company_id,
        branch_id=branch_id,
        start_time=as_utc(now) if now is not None else now_utc(),
        status=SessionStatus.ACTIVE.value,
    )
    session.add(work_session)

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        active = await _load_active(session, employee_id)
        if active is not None:
            logger.info(
                "session_start_race_recovered",
                extra={"extra": {"employee_id": str(employee_id), "session_id": str(active.id)}},
            )
            return build_session_response(active)
        raise PersistenceError("The store rejected the new work session") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("session_start_failed", extra={"extra": {"employee_id": str(employee_id)}})
        raise PersistenceError("The store rejected the new work session") from exc

    logger.info(
        "session_started",
        extra={"extra": {"employee_id": str(employee_id), "session_id": str(work_session.id)}},
    )
    await publish_session_event(work_session, "started")
    return build_session_response(work_session)


async def stop_session(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> WorkSessionResponse:
    """Clock the employee out. Raises NotFoundError when nothing is running."""
    active = await _load_active(session, employee_id, for_update=True)
    if active is None:
        raise NotFoundError("No active work session")

    active.end_time = as_utc(now) if now is not None else now_utc()
    active.status = SessionStatus.COMPLETED.value
    await commit_or_raise(session)

    logger.info(
        "session_stopped",
        extra={"extra": {"employee_id": str(employee_id), "session_id": str(active.id)}},
    )
    await publish_session_event(active, "stopped")
    return build_session_response(active)


async def get_active_session(session: AsyncSession, employee_id: uuid.UUID) -> WorkSessionResponse | None:
    """Return the employee's open session, if any."""
    active = await _load_active(session, employee_id)
    return build_session_response(active) if active is not None else None


async def list_sessions(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    offset: int = 0,
    limit: int = 100,
) -> WorkSessionListResponse:
    """List an employee's sessions ordered by start_time DESC."""
    filters = [
        col(WorkSession.company_id) == company_id,
        col(WorkSession.employee_id) == employee_id,
    ]
    count_result = await session.execute(select(func.count()).select_from(WorkSession).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(WorkSession)
        .where(*filters)
        .order_by(col(WorkSession.start_time).desc())
        .offset(offset)
        .limit(limit)
    )
    return WorkSessionListResponse(
        items=[build_session_response(s) for s in result.scalars().all()],
        total=total,
    )


async def work_history(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> WorkHistoryResponse:
    """Finished sessions grouped by month then day of clock-in, newest first.

    Sessions awaiting a correction are included with their recorded times.
    """
    result = await session.execute(
        select(WorkSession)
        .where(
            col(WorkSession.company_id) == company_id,
            col(WorkSession.employee_id) == employee_id,
            col(WorkSession.end_time).is_not(None),
        )
        .order_by(col(WorkSession.start_time).desc())
    )

    by_day: dict[date, WorkHistoryDay] = {}
    for work_session in result.scalars().all():
        entry = build_session_response(work_session)
        day = local_day(work_session.start_time)
        bucket = by_day.setdefault(day, WorkHistoryDay(day=day, total_minutes=0, sessions=[]))
        bucket.sessions.append(entry)
        bucket.total_minutes += entry.worked_minutes or 0

    by_month: dict[str, list[WorkHistoryDay]] = defaultdict(list)
    for day in sorted(by_day, reverse=True):
        by_month[f"{day.year:04d}-{day.month:02d}"].append(by_day[day])

    return WorkHistoryResponse(
        months=[
            WorkHistoryMonth(month=month, total_minutes=sum(d.total_minutes for d in days), days=days)
            for month, days in by_month.items()
        ],
    )
