"""Tests for the correction workflow: propose, approve, reject, and the
conflict, scope and audit rules around it.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlmodel import col

from timeleave.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from timeleave.models.audit import AuditEntry
from timeleave.models.base import as_utc
from timeleave.models.enums import CompanyRole, SessionStatus
from timeleave.models.notification import Notification
from timeleave.models.work_session import WorkSession
from timeleave.schemas.auth import AuthContext
from timeleave.services import correction, session_clock
from timeleave.services.events import SessionUpdated, get_event_bus

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeleave.schemas.session import WorkSessionResponse

COMPANY_ID = uuid.uuid4()
BRANCH_ID = uuid.uuid4()
OTHER_BRANCH_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()

EMPLOYEE = AuthContext(company_id=COMPANY_ID, user_id=EMPLOYEE_ID, branch_id=BRANCH_ID, display_name="Ada Lovelace")
OWNER = AuthContext(company_id=COMPANY_ID, user_id=ADMIN_ID, role=CompanyRole.OWNER, display_name="Olga Owner")

NINE = datetime(2024, 6, 10, 9, 0, tzinfo=UTC)
EIGHT_THIRTY = datetime(2024, 6, 10, 8, 30, tzinfo=UTC)
FIVE_PM = datetime(2024, 6, 10, 17, 0, tzinfo=UTC)


async def _finished_session(db_session: AsyncSession) -> WorkSessionResponse:
    await session_clock.start_session(db_session, EMPLOYEE_ID, COMPANY_ID, BRANCH_ID, now=NINE)
    return await session_clock.stop_session(db_session, EMPLOYEE_ID, now=FIVE_PM)


async def _audit_entries(db_session: AsyncSession, entity_id: uuid.UUID) -> list[AuditEntry]:
    result = await db_session.execute(select(AuditEntry).where(col(AuditEntry.entity_id) == entity_id))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Propose
# ---------------------------------------------------------------------------


async def test_propose_captures_original_times(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)

    proposed = await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY, FIVE_PM)

    assert proposed.status == SessionStatus.PENDING_APPROVAL
    assert as_utc(proposed.original_start_time) == NINE
    assert as_utc(proposed.original_end_time) == FIVE_PM
    assert as_utc(proposed.edited_start_time) == EIGHT_THIRTY
    assert as_utc(proposed.start_time) == NINE


async def test_propose_twice_conflicts(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)

    with pytest.raises(ConflictError) as exc_info:
        await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    assert exc_info.value.code == "correction_pending"


async def test_new_proposal_clears_previous_resolver(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    await correction.resolve_correction(db_session, OWNER, finished.id, approved=False)

    proposed = await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)

    assert proposed.status == SessionStatus.PENDING_APPROVAL
    assert proposed.resolved_by is None
    assert proposed.resolved_by_name is None
    assert proposed.resolved_at is None
    assert len(await _audit_entries(db_session, finished.id)) == 1


async def test_propose_on_running_session_conflicts(db_session: AsyncSession) -> None:
    running = await session_clock.start_session(db_session, EMPLOYEE_ID, COMPANY_ID, now=NINE)

    with pytest.raises(ConflictError) as exc_info:
        await correction.propose_correction(db_session, EMPLOYEE, running.id, EIGHT_THIRTY)
    assert exc_info.value.code == "session_active"


async def test_propose_end_before_start_rejected(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    late_start = datetime(2024, 6, 10, 18, 0, tzinfo=UTC)

    with pytest.raises(ValidationError):
        await correction.propose_correction(db_session, EMPLOYEE, finished.id, late_start)

    reloaded = await db_session.get(WorkSession, finished.id, populate_existing=True)
    assert reloaded is not None
    assert reloaded.status == SessionStatus.COMPLETED


async def test_propose_someone_elses_session_forbidden(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    stranger = AuthContext(company_id=COMPANY_ID, user_id=uuid.uuid4())

    with pytest.raises(PermissionDeniedError):
        await correction.propose_correction(db_session, stranger, finished.id, EIGHT_THIRTY)


async def test_propose_unknown_session_not_found(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await correction.propose_correction(db_session, EMPLOYEE, uuid.uuid4(), EIGHT_THIRTY)


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


async def test_reject_keeps_recorded_times(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY, FIVE_PM)

    resolved = await correction.resolve_correction(db_session, OWNER, finished.id, approved=False)

    assert resolved.status == SessionStatus.COMPLETED
    assert as_utc(resolved.start_time) == NINE
    assert as_utc(resolved.end_time) == FIVE_PM
    assert resolved.original_start_time is None
    assert resolved.edited_start_time is None
    assert resolved.resolved_by == ADMIN_ID
    assert resolved.resolved_by_name == "Olga Owner"

    entries = await _audit_entries(db_session, finished.id)
    assert len(entries) == 1
    assert entries[0].outcome == "rejected"
    assert entries[0].entity_type == "work_session"


async def test_approve_applies_proposed_times(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY, FIVE_PM)

    resolved = await correction.resolve_correction(db_session, OWNER, finished.id, approved=True)

    assert resolved.status == SessionStatus.COMPLETED
    assert as_utc(resolved.start_time) == EIGHT_THIRTY
    assert as_utc(resolved.end_time) == FIVE_PM

    entries = await _audit_entries(db_session, finished.id)
    assert len(entries) == 1
    assert entries[0].outcome == "approved"
    assert entries[0].resolver_id == ADMIN_ID
    assert entries[0].before_json is not None
    assert entries[0].before_json["status"] == "pending_approval"
    assert entries[0].after_json is not None
    assert entries[0].after_json["status"] == "completed"


async def test_approve_without_new_end_keeps_end(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)

    resolved = await correction.resolve_correction(db_session, OWNER, finished.id, approved=True)

    assert as_utc(resolved.start_time) == EIGHT_THIRTY
    assert as_utc(resolved.end_time) == FIVE_PM


async def test_resolve_twice_conflicts(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    await correction.resolve_correction(db_session, OWNER, finished.id, approved=True)

    with pytest.raises(ConflictError) as exc_info:
        await correction.resolve_correction(db_session, OWNER, finished.id, approved=False)
    assert exc_info.value.code == "not_pending"
    assert len(await _audit_entries(db_session, finished.id)) == 1


async def test_resolve_after_session_modified_conflicts(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)

    row = await db_session.get(WorkSession, finished.id)
    assert row is not None
    row.end_time = datetime(2024, 6, 10, 18, 0, tzinfo=UTC)
    await db_session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await correction.resolve_correction(db_session, OWNER, finished.id, approved=False)
    assert exc_info.value.code == "session_modified"


async def test_employee_cannot_resolve(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)

    with pytest.raises(PermissionDeniedError):
        await correction.resolve_correction(db_session, EMPLOYEE, finished.id, approved=True)

    reloaded = await db_session.get(WorkSession, finished.id, populate_existing=True)
    assert reloaded is not None
    assert reloaded.status == SessionStatus.PENDING_APPROVAL


async def test_branch_admin_scope(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    outsider = AuthContext(
        company_id=COMPANY_ID, user_id=uuid.uuid4(), role=CompanyRole.BRANCH_ADMIN, branch_id=OTHER_BRANCH_ID
    )
    branch_admin = AuthContext(
        company_id=COMPANY_ID, user_id=uuid.uuid4(), role=CompanyRole.BRANCH_ADMIN, branch_id=BRANCH_ID
    )

    with pytest.raises(PermissionDeniedError):
        await correction.resolve_correction(db_session, outsider, finished.id, approved=True)

    resolved = await correction.resolve_correction(db_session, branch_admin, finished.id, approved=True)
    assert resolved.resolved_by == branch_admin.user_id
    assert resolved.resolved_by_name == str(branch_admin.user_id)


async def test_resolution_notifies_employee(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    await correction.resolve_correction(db_session, OWNER, finished.id, approved=False)

    result = await db_session.execute(select(Notification).where(col(Notification.employee_id) == EMPLOYEE_ID))
    notifications = list(result.scalars().all())
    assert len(notifications) == 1
    assert notifications[0].title == "Time correction rejected"
    assert notifications[0].kind == "error"


async def test_correction_events_published(db_session: AsyncSession) -> None:
    finished = await _finished_session(db_session)
    received: list[SessionUpdated] = []

    async def _collect(event: SessionUpdated) -> None:
        received.append(event)

    get_event_bus().subscribe(_collect)
    await correction.propose_correction(db_session, EMPLOYEE, finished.id, EIGHT_THIRTY)
    await correction.resolve_correction(db_session, OWNER, finished.id, approved=True)

    assert [e.reason for e in received] == ["correction_proposed", "correction_resolved"]
    assert [e.status for e in received] == ["pending_approval", "completed"]


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

EMPLOYEE_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(EMPLOYEE_ID),
    "X-Role": "employee",
    "X-Branch-Id": str(BRANCH_ID),
}
OWNER_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "owner",
    "X-User-Name": "Olga Owner",
}
SESSIONS_URL = f"/companies/{COMPANY_ID}/sessions"


async def _api_finished_session(async_client: AsyncClient) -> str:
    resp = await async_client.post(f"{SESSIONS_URL}/start", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    resp = await async_client.post(f"{SESSIONS_URL}/stop", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    session_id: str = resp.json()["id"]
    return session_id


async def test_api_propose_and_approve(async_client: AsyncClient) -> None:
    session_id = await _api_finished_session(async_client)

    resp = await async_client.post(
        f"{SESSIONS_URL}/{session_id}/correction",
        json={"start_time": "2020-01-01T08:30:00Z"},
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending_approval"

    resp = await async_client.post(f"{SESSIONS_URL}/{session_id}/correction/approve", headers=OWNER_HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "completed"
    assert body["start_time"].startswith("2020-01-01T08:30:00")
    assert body["resolved_by_name"] == "Olga Owner"


async def test_api_resolve_requires_admin(async_client: AsyncClient) -> None:
    session_id = await _api_finished_session(async_client)

    resp = await async_client.post(f"{SESSIONS_URL}/{session_id}/correction/reject", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"


async def test_api_resolve_not_pending_reports_code(async_client: AsyncClient) -> None:
    session_id = await _api_finished_session(async_client)

    resp = await async_client.post(f"{SESSIONS_URL}/{session_id}/correction/approve", headers=OWNER_HEADERS)

    assert resp.status_code == 409
    assert resp.json()["code"] == "not_pending"


async def test_api_inverted_payload_is_422(async_client: AsyncClient) -> None:
    session_id = await _api_finished_session(async_client)

    resp = await async_client.post(
        f"{SESSIONS_URL}/{session_id}/correction",
        json={"start_time": "2024-06-10T17:00:00Z", "end_time": "2024-06-10T09:00:00Z"},
        headers=EMPLOYEE_HEADERS,
    )

    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"
