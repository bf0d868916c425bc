"""Values describing an authenticated session, shared by server and client code."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hrdesk.security.roles import Role, parse_role


@dataclass(frozen=True)
class Principal:
    """
    An authenticated identity, independent of the business profile.

    Created when the hosted auth service issues a session; gone on sign-out
    or expiry.
    """

    user_id: str
    """Stable identity token (``sub``); matches ``Profile.userid``."""

    email: str | None
    session_id: str | None = None
    app_role: Role | None = None
    """Role stamped as app metadata at provisioning; informational only."""

    def to_dict(self) -> dict[str, object]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "session_id": self.session_id,
            "app_role": self.app_role.value if self.app_role else None,
        }


@dataclass(frozen=True)
class AuthSession:
    """A session as delivered by the auth collaborator."""

    access_token: str
    refresh_token: str | None
    expires_at: int | None
    principal: Principal

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AuthSession:
        user = payload.get("user") or {}
        app_metadata = user.get("app_metadata") or {}
        return cls(
            access_token=str(payload["access_token"]),
            refresh_token=payload.get("refresh_token"),
            expires_at=payload.get("expires_at"),
            principal=Principal(
                user_id=str(user.get("id") or ""),
                email=user.get("email"),
                session_id=payload.get("session_id"),
                app_role=parse_role(app_metadata.get("role")),
            ),
        )
