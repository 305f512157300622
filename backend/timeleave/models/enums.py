from __future__ import annotations

import enum


class SessionStatus(enum.StrEnum):
    """Lifecycle of a clock-in/clock-out work session."""

    ACTIVE = "active"
    PENDING_APPROVAL = "pending_approval"
    COMPLETED = "completed"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(enum.StrEnum):
    """Kind of leave being requested."""

    VACATION = "vacation"
    SICK = "sick"
    OTHER = "other"


class ResolutionOutcome(enum.StrEnum):
    """Outcome recorded on an audit entry."""

    APPROVED = "approved"
    REJECTED = "rejected"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit trail."""

    WORK_SESSION = "work_session"
    LEAVE_REQUEST = "leave_request"


class CompanyRole(enum.StrEnum):
    """Role of a user within their company."""

    OWNER = "owner"
    BRANCH_ADMIN = "branch_admin"
    EMPLOYEE = "employee"


class NotificationKind(enum.StrEnum):
    """Severity shown next to a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
