# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from timeleave.models.enums import CompanyRole

ADMIN_ROLES = frozenset({CompanyRole.OWNER, CompanyRole.BRANCH_ADMIN})


class AuthContext(BaseModel):
    """Already-authenticated identity supplied by the auth collaborator."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: CompanyRole = CompanyRole.EMPLOYEE
    branch_id: uuid.UUID | None = None
    display_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def resolver_name(self) -> str:
        """Name captured on audit entries; falls back to the user id."""
        return self.display_name or str(self.user_id)
