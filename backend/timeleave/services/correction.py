"""Retroactive corrections of recorded work sessions.

A session moves ``completed -> pending_approval`` when its owner proposes new
times and back to ``completed`` when an administrator resolves the proposal.
The ``original_*`` snapshot lets the resolver see what the proposal replaces
and detect a session that changed underneath the proposal.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from timeleave.db import commit_or_raise
from timeleave.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from timeleave.models.base import as_utc, now_utc
from timeleave.models.enums import AuditEntityType, NotificationKind, ResolutionOutcome, SessionStatus
from timeleave.models.work_session import WorkSession
from timeleave.services.audit import model_to_audit_dict, record_resolution
from timeleave.services.authority import ensure_can_resolve
from timeleave.services.notification import get_notification_dispatcher
from timeleave.services.session_clock import build_session_response, publish_session_event

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeleave.schemas.auth import AuthContext
    from timeleave.schemas.session import WorkSessionResponse

logger = logging.getLogger(__name__)


def _same_instant(a: datetime | None, b: datetime | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return as_utc(a) == as_utc(b)


async def _get_session_for_update(
    session: AsyncSession,
    company_id: uuid.UUID,
    session_id: uuid.UUID,
) -> WorkSession:
    """Fetch and lock a work session scoped to company. Raises 404 if not found."""
    result = await session.execute(
        select(WorkSession)
        .where(col(WorkSession.id) == session_id, col(WorkSession.company_id) == company_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    work_session = result.scalar_one_or_none()
    if work_session is None:
        raise NotFoundError("Work session not found")
    return work_session


async def propose_correction(
    session: AsyncSession,
    auth: AuthContext,
    session_id: uuid.UUID,
    new_start: datetime,
    new_end: datetime | None = None,
) -> WorkSessionResponse:
    """Propose new start (and optionally end) times for a finished session.

    Leaving ``new_end`` empty keeps the recorded end time.
    """
    work_session = await _get_session_for_update(session, auth.company_id, session_id)

    if work_session.employee_id != auth.user_id:
        raise PermissionDeniedError("Only the session owner can propose a correction")
    if work_session.status == SessionStatus.PENDING_APPROVAL.value:
        raise ConflictError("A correction is already pending for this session", code="correction_pending")
    if work_session.end_time is None:
        raise ConflictError("Stop the running session before correcting it", code="session_active")

    proposed_start = as_utc(new_start)
    proposed_end = as_utc(new_end) if new_end is not None else None
    effective_end = proposed_end if proposed_end is not None else as_utc(work_session.end_time)
    if effective_end <= proposed_start:
        raise ValidationError("Corrected end time must be after the start time")

    work_session.original_start_time = work_session.start_time
    work_session.original_end_time = work_session.end_time
    work_session.edited_start_time = proposed_start
    work_session.edited_end_time = proposed_end
    work_session.status = SessionStatus.PENDING_APPROVAL.value
    # An earlier resolution stays in the audit trail, not on the pending row.
    work_session.resolved_by = None
    work_session.resolved_by_name = None
    work_session.resolved_at = None
    await commit_or_raise(session)

    logger.info(
        "correction_proposed",
        extra={"extra": {"session_id": str(session_id), "employee_id": str(auth.user_id)}},
    )
    await publish_session_event(work_session, "correction_proposed")
    return build_session_response(work_session)


async def resolve_correction(
    session: AsyncSession,
    auth: AuthContext,
    session_id: uuid.UUID,
    approved: bool,
    *,
    now: datetime | None = None,
) -> WorkSessionResponse:
    """Approve or reject a pending correction (administrators only).

    Flow:
    1. Lock the session and check the caller's administrative scope.
    2. Require status pending_approval (guards double resolution).
    3. Require the recorded times to still match the snapshot.
    4. Apply the proposal when approved; clear snapshot and proposal.
    5. Stamp the resolver, write one audit entry and one notification.
    6. Commit, then publish session-updated.
    """
    work_session = await _get_session_for_update(session, auth.company_id, session_id)
    ensure_can_resolve(auth, work_session.company_id, work_session.branch_id)

    if work_session.status != SessionStatus.PENDING_APPROVAL.value:
        raise ConflictError("Correction has already been resolved or was never proposed", code="not_pending")
    if not (
        _same_instant(work_session.start_time, work_session.original_start_time)
        and _same_instant(work_session.end_time, work_session.original_end_time)
    ):
        raise ConflictError(
            "Session times changed after the correction was proposed",
            code="session_modified",
        )

    before_dict = model_to_audit_dict(work_session)
    resolved_at = as_utc(now) if now is not None else now_utc()

    if approved:
        if work_session.edited_start_time is not None:
            work_session.start_time = work_session.edited_start_time
        if work_session.edited_end_time is not None:
            work_session.end_time = work_session.edited_end_time

    work_session.status = SessionStatus.COMPLETED.value
    work_session.original_start_time = None
    work_session.original_end_time = None
    work_session.edited_start_time = None
    work_session.edited_end_time = None
    work_session.resolved_by = auth.user_id
    work_session.resolved_by_name = auth.resolver_name
    work_session.resolved_at = resolved_at

    await session.flush()

    outcome = ResolutionOutcome.APPROVED if approved else ResolutionOutcome.REJECTED
    await record_resolution(
        session,
        resolver=auth,
        entity_type=AuditEntityType.WORK_SESSION,
        entity_id=work_session.id,
        company_id=work_session.company_id,
        branch_id=work_session.branch_id,
        employee_id=work_session.employee_id,
        outcome=outcome,
        resolved_at=resolved_at,
        before_json=before_dict,
        after_json=model_to_audit_dict(work_session),
    )

    day = as_utc(work_session.start_time).date().isoformat()
    await get_notification_dispatcher().notify(
        session,
        employee_id=work_session.employee_id,
        company_id=work_session.company_id,
        kind=NotificationKind.SUCCESS if approved else NotificationKind.ERROR,
        title="Time correction approved" if approved else "Time correction rejected",
        message=f"Your request to change the working time of {day} was {outcome.value}.",
    )

    await commit_or_raise(session)

    logger.info(
        "correction_resolved",
        extra={
            "extra": {
                "session_id": str(session_id),
                "outcome": outcome.value,
                "resolver_id": str(auth.user_id),
            }
        },
    )
    await publish_session_event(work_session, "correction_resolved")
    return build_session_response(work_session)
