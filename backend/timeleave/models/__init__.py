from sqlmodel import SQLModel

from timeleave.models.account import EmployeeLeaveAccount
from timeleave.models.audit import AuditEntry
from timeleave.models.base import ResolutionMixin, TimestampMixin, UUIDBase
from timeleave.models.counter import LeaveRequestCounter
from timeleave.models.enums import (
    AuditEntityType,
    CompanyRole,
    LeaveStatus,
    LeaveType,
    NotificationKind,
    ResolutionOutcome,
    SessionStatus,
)
from timeleave.models.leave_request import LeaveRequest
from timeleave.models.notification import Notification
from timeleave.models.work_session import WorkSession

__all__ = [
    "AuditEntityType",
    "AuditEntry",
    "CompanyRole",
    "EmployeeLeaveAccount",
    "LeaveRequest",
    "LeaveRequestCounter",
    "LeaveStatus",
    "LeaveType",
    "Notification",
    "NotificationKind",
    "ResolutionMixin",
    "ResolutionOutcome",
    "SQLModel",
    "SessionStatus",
    "TimestampMixin",
    "UUIDBase",
    "WorkSession",
]
