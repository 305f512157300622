"""Outcome notifications for employees.

The dispatcher is an external collaborator; the default implementation
stores a row in the caller's transaction so the notification commits (or
rolls back) together with the resolution that produced it.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import delete, func, select, update
from sqlmodel import col

from timeleave.config import get_settings
from timeleave.db import commit_or_raise
from timeleave.exceptions import NotFoundError
from timeleave.models.enums import NotificationKind
from timeleave.models.notification import Notification
from timeleave.schemas.notification import NotificationListResponse, NotificationResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Interface for delivering outcome notifications."""

    async def notify(
        self,
        session: AsyncSession,
        *,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        kind: NotificationKind,
        title: str,
        message: str,
    ) -> None:
        """Queue one notification for ``employee_id``."""
        ...


class StoreNotificationDispatcher:
    """Writes notifications to the ``notification`` table."""

    async def notify(
        self,
        session: AsyncSession,
        *,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        kind: NotificationKind,
        title: str,
        message: str,
    ) -> None:
        session.add(
            Notification(
                employee_id=employee_id,
                company_id=company_id,
                kind=kind.value,
                title=title,
                message=message,
            )
        )
        logger.info(
            "notification_queued",
            extra={"extra": {"employee_id": str(employee_id), "kind": kind.value, "title": title}},
        )


_dispatcher: NotificationDispatcher = StoreNotificationDispatcher()


def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the configured dispatcher."""
    return _dispatcher


def set_notification_dispatcher(dispatcher: NotificationDispatcher) -> None:
    """Override the dispatcher (for testing or production wiring)."""
    global _dispatcher
    _dispatcher = dispatcher


# ---------------------------------------------------------------------------
# Employee tray
# ---------------------------------------------------------------------------


def _build_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        employee_id=notification.employee_id,
        kind=NotificationKind(notification.kind),
        title=notification.title,
        message=notification.message,
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


async def list_notifications(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> NotificationListResponse:
    """List an employee's notifications, newest first."""
    filters = [
        col(Notification.company_id) == company_id,
        col(Notification.employee_id) == employee_id,
    ]
    unread_result = await session.execute(
        select(func.count()).select_from(Notification).where(*filters, col(Notification.is_read).is_(False))
    )
    unread = unread_result.scalar_one()

    if unread_only:
        filters.append(col(Notification.is_read).is_(False))
    result = await session.execute(
        select(Notification).where(*filters).order_by(col(Notification.created_at).desc()).limit(limit)
    )
    return NotificationListResponse(
        items=[_build_notification_response(n) for n in result.scalars().all()],
        unread=unread,
        poll_after_seconds=get_settings().notification_poll_seconds,
    )


async def mark_notification_read(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> None:
    """Mark one of the employee's notifications as read."""
    result = await session.execute(
        update(Notification)
        .where(
            col(Notification.id) == notification_id,
            col(Notification.company_id) == company_id,
            col(Notification.employee_id) == employee_id,
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise NotFoundError("Notification not found")
    await commit_or_raise(session)


async def delete_notification(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> None:
    """Delete one of the employee's notifications."""
    result = await session.execute(
        delete(Notification)
        .where(
            col(Notification.id) == notification_id,
            col(Notification.company_id) == company_id,
            col(Notification.employee_id) == employee_id,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise NotFoundError("Notification not found")
    await commit_or_raise(session)
