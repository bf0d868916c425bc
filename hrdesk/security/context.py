from __future__ import annotations

from dataclasses import dataclass

from hrdesk.errors import ForbiddenError
from hrdesk.security.permissions import PermissionSet, evaluate
from hrdesk.security.roles import Role


@dataclass(frozen=True)
class TenantScope:
    """The (organization, client) pair that partitions all business data."""

    org_id: int
    client_id: int


@dataclass(frozen=True)
class CallerContext:
    """
    Per-request authorization context.

    Kept small and immutable so it can be attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime, via `scope`)
    """

    user_id: str
    email: str
    role: Role
    scope: TenantScope
    permissions: PermissionSet

    @classmethod
    def for_profile(cls, profile) -> CallerContext:
        return cls(
            user_id=profile.userid,
            email=profile.email,
            role=profile.role,
            scope=TenantScope(org_id=profile.orgid, client_id=profile.clientid),
            permissions=evaluate(profile.role),
        )

    def can(self, capability: str) -> bool:
        return self.permissions.allows(capability)

    def require(self, capability: str) -> None:
        if not self.permissions.allows(capability):
            raise ForbiddenError(f"Missing capability: {capability}")
