"""
Async clients for the hosted auth service and the profile lookup.

``HostedAuthClient`` keeps the current session in memory and notifies
subscribers on every transition (``SIGNED_IN``, ``SIGNED_OUT``,
``TOKEN_REFRESHED``), which is what :class:`IdentityResolver` listens to.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from hrdesk.identity.profile import ProfileSnapshot
from hrdesk.identity.session import AuthSession

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, AuthSession | None], None]


class AuthClientError(Exception):
    """The auth service rejected the request (bad credentials, expired session, ...)."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProfileLookupError(Exception):
    """The profile could not be fetched (network or server failure)."""


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


class HostedAuthClient:
    def __init__(self, base_url: str, *, anon_key: str, client: httpx.AsyncClient | None = None) -> None:
        self._base = base_url.rstrip("/") + "/auth/v1"
        self._anon_key = anon_key
        self._http = client or httpx.AsyncClient(timeout=10.0)
        self._session: AuthSession | None = None
        self._listeners: list[AuthListener] = []

    async def get_session(self) -> AuthSession | None:
        return self._session

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    async def _token(self, grant_type: str, payload: dict[str, Any]) -> AuthSession:
        try:
            resp = await self._http.post(
                f"{self._base}/token",
                params={"grant_type": grant_type},
                headers={"apikey": self._anon_key},
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise AuthClientError("Auth service unavailable") from exc
        if resp.status_code != 200:
            raise AuthClientError(_error_message(resp), status_code=resp.status_code)
        return AuthSession.from_payload(resp.json())

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        session = await self._token("password", {"email": email, "password": password})
        self._session = session
        logger.info("Signed in user=%s", session.principal.user_id)
        self._emit(SIGNED_IN, session)
        return session

    async def refresh_session(self) -> AuthSession:
        if self._session is None or not self._session.refresh_token:
            raise AuthClientError("No session to refresh")
        try:
            session = await self._token("refresh_token", {"refresh_token": self._session.refresh_token})
        except AuthClientError:
            # An unusable refresh token ends the session.
            self._session = None
            self._emit(SIGNED_OUT, None)
            raise
        self._session = session
        self._emit(TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        """
        End the session locally, then invalidate it remotely.

        Local state is cleared even when the remote call fails; the failure is re-raised.
        """

        session = self._session
        self._session = None
        if session is not None:
            self._emit(SIGNED_OUT, None)
        if session is None:
            return

        try:
            resp = await self._http.post(
                f"{self._base}/logout",
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {session.access_token}"},
            )
        except httpx.HTTPError as exc:
            raise AuthClientError("Auth service unavailable") from exc
        if resp.status_code not in (200, 204):
            raise AuthClientError(_error_message(resp), status_code=resp.status_code)

    async def aclose(self) -> None:
        await self._http.aclose()


class ApiProfileLookup:
    """Fetch the caller's profile through the hrdesk API (`GET /me`)."""

    def __init__(self, api_base_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self._base = api_base_url.rstrip("/")
        self._http = client or httpx.AsyncClient(timeout=10.0)

    async def __call__(
        self,
        session: AuthSession,
        email: str,
        *,
        org_id: int | None = None,
        client_id: int | None = None,
    ) -> ProfileSnapshot | None:
        try:
            resp = await self._http.get(
                f"{self._base}/me",
                headers={"Authorization": f"Bearer {session.access_token}"},
            )
        except httpx.HTTPError as exc:
            raise ProfileLookupError(type(exc).__name__) from exc

        if resp.status_code == 401:
            # Signed in, but no active profile row.
            return None
        if resp.status_code != 200:
            raise ProfileLookupError(_error_message(resp))

        profile = ProfileSnapshot.from_dict(resp.json()["profile"])
        if profile.email.lower() != email.lower():
            return None
        if org_id is not None and profile.orgid != org_id:
            return None
        if client_id is not None and profile.clientid != client_id:
            return None
        return profile
