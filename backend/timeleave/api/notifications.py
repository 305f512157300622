# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from timeleave.api.deps import AuthDep, validate_company_scope
from timeleave.db import SessionDep
from timeleave.schemas.notification import NotificationListResponse
from timeleave.services import notification as notification_service

notifications_router = APIRouter(
    prefix="/companies/{company_id}/notifications",
    tags=["notifications"],
    dependencies=[Depends(validate_company_scope)],
)


@notifications_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    session: SessionDep,
    auth: AuthDep,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
) -> NotificationListResponse:
    """The caller's notifications; clients poll again after ``poll_after_seconds``."""
    return await notification_service.list_notifications(
        session, auth.company_id, auth.user_id, unread_only=unread_only, limit=limit
    )


@notifications_router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Mark a notification as read."""
    await notification_service.mark_notification_read(session, auth.company_id, auth.user_id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@notifications_router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Delete a notification."""
    await notification_service.delete_notification(session, auth.company_id, auth.user_id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
