"""HTTP client for administrators resolving approvals.

``ApprovalClient`` wraps the resolve endpoints and turns error responses into
``ResolutionFailed``. ``OptimisticResolution`` updates a local projection
(for example the rows an admin console renders) before the server answers and
puts the previous row back if the call fails.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel

from timeleave.models.enums import CompanyRole
from timeleave.schemas.leave import LeaveRequestResponse
from timeleave.schemas.session import WorkSessionResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_MISSING: Any = object()


class ResolutionFailed(Exception):
    """A resolve call was refused by the server or never reached it."""

    def __init__(self, code: str, detail: str, status_code: int | None = None) -> None:
        self.code = code
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{code}: {detail}")


class ApprovalClient:
    """Resolve leave requests and time corrections over HTTP."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        role: CompanyRole = CompanyRole.OWNER,
        branch_id: uuid.UUID | None = None,
        display_name: str = "",
    ) -> None:
        self._client = client
        self._company_id = company_id
        self._headers = {
            "X-Company-Id": str(company_id),
            "X-User-Id": str(user_id),
            "X-Role": role.value,
        }
        if branch_id is not None:
            self._headers["X-Branch-Id"] = str(branch_id)
        if display_name:
            self._headers["X-User-Name"] = display_name

    async def approve_leave(self, request_id: uuid.UUID) -> LeaveRequestResponse:
        return await self._post(f"leave-requests/{request_id}/approve", LeaveRequestResponse)

    async def reject_leave(self, request_id: uuid.UUID) -> LeaveRequestResponse:
        return await self._post(f"leave-requests/{request_id}/reject", LeaveRequestResponse)

    async def approve_correction(self, session_id: uuid.UUID) -> WorkSessionResponse:
        return await self._post(f"sessions/{session_id}/correction/approve", WorkSessionResponse)

    async def reject_correction(self, session_id: uuid.UUID) -> WorkSessionResponse:
        return await self._post(f"sessions/{session_id}/correction/reject", WorkSessionResponse)

    async def _post(self, path: str, model: type[ModelT]) -> ModelT:
        url = f"/companies/{self._company_id}/{path}"
        try:
            resp = await self._client.post(url, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ResolutionFailed("transport_error", str(exc)) from exc

        if resp.is_success:
            return model.model_validate(resp.json())
        raise _failure_from_response(resp)


def _failure_from_response(resp: httpx.Response) -> ResolutionFailed:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and "code" in body:
        return ResolutionFailed(body["code"], body.get("detail") or body.get("error", ""), resp.status_code)
    return ResolutionFailed("http_error", resp.text[:200], resp.status_code)


class OptimisticResolution(Generic[ModelT]):
    """Apply a resolution to a local projection ahead of the server response.

    ``execute`` applies the optimistic row, awaits the call and stores the
    server's row on success. On any failure the previous row (or its absence)
    is restored and the error propagates to the caller.
    """

    def __init__(
        self,
        projection: MutableMapping[uuid.UUID, ModelT],
        key: uuid.UUID,
        optimistic: ModelT,
    ) -> None:
        self._projection = projection
        self._key = key
        self._optimistic = optimistic
        self._previous: ModelT = _MISSING
        self._applied = False

    def apply(self) -> None:
        self._previous = self._projection.get(self._key, _MISSING)
        self._projection[self._key] = self._optimistic
        self._applied = True

    def rollback(self) -> None:
        if not self._applied:
            return
        if self._previous is _MISSING:
            self._projection.pop(self._key, None)
        else:
            self._projection[self._key] = self._previous
        self._applied = False

    async def execute(self, call: Callable[[], Awaitable[ModelT]]) -> ModelT:
        self.apply()
        try:
            result = await call()
        except Exception:
            logger.warning("Resolution of %s failed; restoring projection", self._key)
            self.rollback()
            raise
        self._projection[self._key] = result
        self._applied = False
        return result


def optimistic_row(row: ModelT, **changes: Any) -> ModelT:
    """Copy of ``row`` with the fields a resolution is expected to change."""
    return row.model_copy(update=changes)
