"""Publish/subscribe hook for work-session changes.

Presentation layers register a callback to refresh when a session is started,
stopped, corrected or resolved, instead of polling.
"""

from __future__ import annotations

import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SESSION_UPDATED = "session-updated"


@dataclass(frozen=True)
class SessionUpdated:
    """Payload delivered to session-updated subscribers."""

    session_id: uuid.UUID
    employee_id: uuid.UUID
    company_id: uuid.UUID
    status: str
    reason: str  # "started", "stopped", "correction_proposed", "correction_resolved"
    kind: str = SESSION_UPDATED


SessionCallback = Callable[[SessionUpdated], Awaitable[None] | None]


class SessionEventBus:
    """In-process registry of session-updated subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[SessionCallback] = []

    def subscribe(self, callback: SessionCallback) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: SessionCallback) -> None:
        """Remove ``callback``; unknown callbacks are ignored."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: SessionUpdated) -> None:
        """Deliver ``event`` to every subscriber.

        Publishing happens after the change is committed, so a failing
        subscriber is logged and does not affect the others.
        """
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "session_updated_subscriber_failed",
                    extra={"extra": {"session_id": str(event.session_id), "reason": event.reason}},
                )


_event_bus = SessionEventBus()


def get_event_bus() -> SessionEventBus:
    """Return the process-wide session event bus."""
    return _event_bus


def set_event_bus(bus: SessionEventBus) -> None:
    """Override the bus (for testing or production wiring)."""
    global _event_bus
    _event_bus = bus


def on_session_updated(callback: SessionCallback) -> Callable[[], None]:
    """Subscribe to session-updated events on the current bus."""
    return _event_bus.subscribe(callback)
