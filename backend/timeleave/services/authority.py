"""Role gate for resolving corrections and leave requests.

Owners administer every branch of their company; branch administrators only
their own branch. Every check here runs before anything is written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from timeleave.exceptions import PermissionDeniedError
from timeleave.models.enums import CompanyRole

if TYPE_CHECKING:
    import uuid

    from timeleave.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


def has_admin_scope(auth: AuthContext, company_id: uuid.UUID, branch_id: uuid.UUID | None) -> bool:
    """Whether ``auth`` administers items of ``company_id``/``branch_id``."""
    if auth.company_id != company_id:
        return False
    if auth.role == CompanyRole.OWNER:
        return True
    if auth.role == CompanyRole.BRANCH_ADMIN:
        return auth.branch_id is not None and auth.branch_id == branch_id
    return False


def ensure_can_resolve(auth: AuthContext, company_id: uuid.UUID, branch_id: uuid.UUID | None) -> None:
    """Raise PermissionDeniedError unless ``auth`` may resolve the item."""
    if has_admin_scope(auth, company_id, branch_id):
        return
    logger.warning(
        "resolve_forbidden",
        extra={"extra": {"user_id": str(auth.user_id), "role": auth.role.value, "branch_id": str(branch_id)}},
    )
    if not auth.is_admin:
        raise PermissionDeniedError("Administrator role required")
    raise PermissionDeniedError("Item is outside your administrative scope")


def ensure_owner_or_admin(
    auth: AuthContext,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    branch_id: uuid.UUID | None,
) -> None:
    """Allow the employee themself or an administrator in scope."""
    if auth.company_id == company_id and auth.user_id == employee_id:
        return
    if has_admin_scope(auth, company_id, branch_id):
        return
    raise PermissionDeniedError("Not authorized to act on this employee's records")


def resolve_branch_filter(auth: AuthContext, branch_id: uuid.UUID | None) -> uuid.UUID | None:
    """Return the branch filter an administrator's queue view is limited to.

    Owners may filter freely; branch administrators are pinned to their
    branch and asking for another one is refused.
    """
    if auth.role == CompanyRole.OWNER:
        return branch_id
    if auth.role == CompanyRole.BRANCH_ADMIN and auth.branch_id is not None:
        if branch_id is not None and branch_id != auth.branch_id:
            raise PermissionDeniedError("Branch administrators may only view their own branch")
        return auth.branch_id
    raise PermissionDeniedError("Administrator role required")
