"""Tests for the administrator projections: pending queue, resolved today,
and the month/day history, including branch scoping and employee names.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest

from timeleave.exceptions import PermissionDeniedError
from timeleave.models.enums import CompanyRole
from timeleave.schemas.auth import AuthContext
from timeleave.services import account as account_service
from timeleave.services import approval, correction, leave, session_clock
from timeleave.services.employee import EmployeeInfo, InMemoryEmployeeDirectory, set_employee_directory

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
NORTH = uuid.uuid4()
SOUTH = uuid.uuid4()
ANNA_ID = uuid.uuid4()
BRUNO_ID = uuid.uuid4()

OWNER = AuthContext(company_id=COMPANY_ID, user_id=uuid.uuid4(), role=CompanyRole.OWNER)
NORTH_ADMIN = AuthContext(company_id=COMPANY_ID, user_id=uuid.uuid4(), role=CompanyRole.BRANCH_ADMIN, branch_id=NORTH)
ANNA = AuthContext(company_id=COMPANY_ID, user_id=ANNA_ID, branch_id=NORTH)
BRUNO = AuthContext(company_id=COMPANY_ID, user_id=BRUNO_ID, branch_id=SOUTH)

TODAY = date(2024, 6, 20)


@pytest.fixture(autouse=True)
def _directory() -> Iterator[InMemoryEmployeeDirectory]:
    directory = InMemoryEmployeeDirectory()
    directory.seed(
        EmployeeInfo(
            id=ANNA_ID, company_id=COMPANY_ID, branch_id=NORTH, first_name="Anna", last_name="Nowak", email="a@x.io"
        )
    )
    directory.seed(
        EmployeeInfo(
            id=BRUNO_ID, company_id=COMPANY_ID, branch_id=SOUTH, first_name="Bruno", last_name="Diaz", email="b@x.io"
        )
    )
    set_employee_directory(directory)
    yield directory


async def _leave(db_session: AsyncSession, who: AuthContext, day: date) -> uuid.UUID:
    await account_service.set_allocation(db_session, COMPANY_ID, who.user_id, 30)
    submitted = await leave.submit_leave_request(
        db_session,
        who.user_id,
        COMPANY_ID,
        who.branch_id,
        day,
        day,
        now=datetime(day.year, day.month, day.day, 8, 0, tzinfo=UTC),
    )
    return submitted.id


async def _pending_correction(db_session: AsyncSession, who: AuthContext, day: int) -> uuid.UUID:
    await session_clock.start_session(
        db_session, who.user_id, COMPANY_ID, who.branch_id, now=datetime(2024, 6, day, 9, 0, tzinfo=UTC)
    )
    stopped = await session_clock.stop_session(db_session, who.user_id, now=datetime(2024, 6, day, 17, 0, tzinfo=UTC))
    await correction.propose_correction(db_session, who, stopped.id, datetime(2024, 6, day, 8, 0, tzinfo=UTC))
    return stopped.id


# ---------------------------------------------------------------------------
# Pending queue
# ---------------------------------------------------------------------------


async def test_pending_queue_oldest_first_with_names(db_session: AsyncSession) -> None:
    later = await _leave(db_session, ANNA, date(2024, 6, 12))
    earlier = await _leave(db_session, BRUNO, date(2024, 6, 5))
    fix = await _pending_correction(db_session, ANNA, 3)

    queue = await approval.pending_queue(db_session, OWNER)

    assert [r.id for r in queue.leave_requests] == [earlier, later]
    assert [s.id for s in queue.corrections] == [fix]
    assert queue.leave_requests[0].employee_name == "Bruno Diaz"
    assert queue.corrections[0].employee_name == "Anna Nowak"


async def test_pending_queue_branch_admin_sees_own_branch(db_session: AsyncSession) -> None:
    anna_request = await _leave(db_session, ANNA, date(2024, 6, 12))
    await _leave(db_session, BRUNO, date(2024, 6, 5))

    queue = await approval.pending_queue(db_session, NORTH_ADMIN)

    assert [r.id for r in queue.leave_requests] == [anna_request]


async def test_pending_queue_branch_admin_cannot_pick_other_branch(db_session: AsyncSession) -> None:
    with pytest.raises(PermissionDeniedError):
        await approval.pending_queue(db_session, NORTH_ADMIN, branch_id=SOUTH)


async def test_pending_queue_employee_forbidden(db_session: AsyncSession) -> None:
    with pytest.raises(PermissionDeniedError):
        await approval.pending_queue(db_session, ANNA)


async def test_resolved_items_leave_the_queue(db_session: AsyncSession) -> None:
    request_id = await _leave(db_session, ANNA, date(2024, 6, 12))
    session_id = await _pending_correction(db_session, ANNA, 3)

    await leave.resolve_leave_request(db_session, OWNER, request_id, approved=False)
    await correction.resolve_correction(db_session, OWNER, session_id, approved=True)

    queue = await approval.pending_queue(db_session, OWNER)
    assert queue.leave_requests == []
    assert queue.corrections == []


# ---------------------------------------------------------------------------
# Resolved today / history
# ---------------------------------------------------------------------------


async def test_resolved_today_and_history_split(db_session: AsyncSession) -> None:
    today_request = await _leave(db_session, ANNA, date(2024, 6, 12))
    may_request = await _leave(db_session, BRUNO, date(2024, 6, 13))
    june_fix = await _pending_correction(db_session, ANNA, 3)

    await leave.resolve_leave_request(
        db_session, OWNER, today_request, approved=True, now=datetime(2024, 6, 20, 10, 0, tzinfo=UTC)
    )
    await leave.resolve_leave_request(
        db_session, OWNER, may_request, approved=False, now=datetime(2024, 5, 31, 15, 0, tzinfo=UTC)
    )
    await correction.resolve_correction(
        db_session, OWNER, june_fix, approved=True, now=datetime(2024, 6, 18, 11, 0, tzinfo=UTC)
    )

    today = await approval.resolved_today(db_session, OWNER, today=TODAY)
    assert today.day == TODAY
    assert [r.id for r in today.leave_requests] == [today_request]
    assert today.corrections == []

    history = await approval.resolution_history(db_session, OWNER, today=TODAY)
    assert [m.month for m in history.months] == ["2024-06", "2024-05"]
    june, may = history.months
    assert [d.day for d in june.days] == [date(2024, 6, 18)]
    assert [s.id for s in june.days[0].corrections] == [june_fix]
    assert [d.day for d in may.days] == [date(2024, 5, 31)]
    assert [r.id for r in may.days[0].leave_requests] == [may_request]
    assert may.days[0].leave_requests[0].employee_name == "Bruno Diaz"


async def test_history_respects_branch_scope(db_session: AsyncSession) -> None:
    north = await _leave(db_session, ANNA, date(2024, 6, 12))
    south = await _leave(db_session, BRUNO, date(2024, 6, 13))
    resolved_at = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
    await leave.resolve_leave_request(db_session, OWNER, north, approved=True, now=resolved_at)
    await leave.resolve_leave_request(db_session, OWNER, south, approved=True, now=resolved_at)

    history = await approval.resolution_history(db_session, NORTH_ADMIN, today=TODAY)

    ids = [r.id for m in history.months for d in m.days for r in d.leave_requests]
    assert ids == [north]


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

OWNER_HEADERS = {"X-Company-Id": str(COMPANY_ID), "X-User-Id": str(OWNER.user_id), "X-Role": "owner"}
ANNA_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(ANNA_ID),
    "X-Role": "employee",
    "X-Branch-Id": str(NORTH),
}
APPROVALS_URL = f"/companies/{COMPANY_ID}/approvals"


async def test_api_pending_queue(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _leave(db_session, ANNA, date(2024, 6, 12))

    resp = await async_client.get(f"{APPROVALS_URL}/pending", headers=OWNER_HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["leave_requests"]) == 1
    assert body["leave_requests"][0]["employee_name"] == "Anna Nowak"
    assert body["corrections"] == []


async def test_api_projections_require_admin(async_client: AsyncClient) -> None:
    for path in ("pending", "resolved-today", "history"):
        resp = await async_client.get(f"{APPROVALS_URL}/{path}", headers=ANNA_HEADERS)
        assert resp.status_code == 403


async def test_api_resolved_today_and_history_shapes(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{APPROVALS_URL}/resolved-today", headers=OWNER_HEADERS)
    assert resp.status_code == 200
    assert set(resp.json()) == {"day", "leave_requests", "corrections"}

    resp = await async_client.get(f"{APPROVALS_URL}/history", headers=OWNER_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"months": []}
