"""
Validate session tokens issued by the hosted auth service.

The auth service signs access tokens with a project-wide HS256 secret and
sets ``aud`` to ``authenticated``. Before we trust anything in a token we
verify signature, audience and lifetime (``exp``/``nbf`` with leeway); only
then are claims read into a :class:`Principal`.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from hrdesk.identity.session import Principal
from hrdesk.security.roles import parse_role

logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails. Do not log the token."""

    pass


def _extract_claims(payload: dict[str, Any]) -> Principal:
    """
    Build a ``Principal`` from a validated payload.

    * **sub** - identity token (UUID); the profile row is keyed by it.
    * **email** - used by the identity resolver for profile lookup.
    * **session_id** - opaque per-session id.
    * **app_metadata.role** - role stamped at provisioning. Informational;
      authorization always uses the stored profile role.
    """

    user_id = str(payload.get("sub") or "")
    email = payload.get("email")
    app_metadata = payload.get("app_metadata")
    raw_role = app_metadata.get("role") if isinstance(app_metadata, dict) else None

    return Principal(
        user_id=user_id,
        email=str(email) if email else None,
        session_id=str(payload["session_id"]) if payload.get("session_id") else None,
        app_role=parse_role(raw_role),
    )


class SessionTokenValidator:
    def __init__(self, secret: str, *, audience: str = "authenticated", leeway_seconds: int = 60) -> None:
        self._secret = secret
        self._audience = audience
        self._leeway = leeway_seconds

    def validate(self, token: str) -> Principal:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=["HS256"],
                audience=self._audience,
                leeway=self._leeway,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("Token expired")
            raise TokenValidationError("Token expired") from e
        except jwt.InvalidAudienceError as e:
            logger.info("Token invalid audience")
            raise TokenValidationError("Invalid token: audience") from e
        except jwt.InvalidTokenError as e:
            logger.info("Token invalid: %s", type(e).__name__)
            raise TokenValidationError("Invalid token") from e

        principal = _extract_claims(payload)
        if not principal.user_id:
            raise TokenValidationError("Invalid token: missing subject")
        return principal
