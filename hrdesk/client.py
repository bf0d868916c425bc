"""
Async API client that gates every call on the caller's permission set.

The server enforces the same rules; checking here means a call the caller
is not allowed to make is never sent at all.
"""

from __future__ import annotations

import logging
import secrets
import string
from typing import Any

import httpx

from hrdesk.errors import AppError, AuthError, ForbiddenError
from hrdesk.identity.hosted import ApiProfileLookup, HostedAuthClient
from hrdesk.identity.resolver import IdentityResolver
from hrdesk.security.roles import Role
from hrdesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class HrApiClient:
    def __init__(
        self,
        api_base_url: str,
        resolver: IdentityResolver,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = api_base_url.rstrip("/")
        self._resolver = resolver
        self._http = client or httpx.AsyncClient(timeout=10.0)

    def _authorize(self, capability: str) -> dict[str, str]:
        snapshot = self._resolver.snapshot
        session = self._resolver.session
        if not snapshot.authenticated or session is None:
            raise AuthError("You must be logged in")
        if not snapshot.permissions.allows(capability):
            logger.info("Blocked client call capability=%s user=%s", capability, snapshot.principal.user_id)
            raise ForbiddenError(f"Missing capability: {capability}")
        return {"Authorization": f"Bearer {session.access_token}"}

    async def _send(self, method: str, path: str, headers: dict[str, str], **kwargs: Any) -> Any:
        resp = await self._http.request(method, f"{self._base}{path}", headers=headers, **kwargs)
        if resp.status_code == 204:
            return None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            message = None
            if isinstance(body, dict):
                message = body.get("error") or body.get("detail")
            raise AppError(str(message or f"HTTP {resp.status_code}"), http_status=resp.status_code)
        return body

    async def list_employees(self, *, search: str | None = None) -> list[dict[str, Any]]:
        headers = self._authorize("can_view_employees")
        params = {"search": search} if search else None
        return await self._send("GET", "/employees", headers, params=params)

    async def create_employee(
        self,
        *,
        email: str,
        fullname: str,
        password: str | None = None,
        role: Role = Role.EMPLOYEE,
        departmentid: int | None = None,
        branchid: int | None = None,
    ) -> dict[str, Any]:
        headers = self._authorize("can_create_employee")
        profile = self._resolver.snapshot.profile
        if profile is None:
            raise ForbiddenError("Profile not resolved")

        body = {
            "email": email,
            "password": password or generate_password(),
            "fullname": fullname,
            "role": Role(role).value,
            "orgid": profile.orgid,
            "clientid": profile.clientid,
            "departmentid": departmentid,
            "branchid": branchid,
        }
        return await self._send("POST", "/functions/v1/create-user", headers, json=body)

    async def update_employee(self, userid: str, **changes: Any) -> dict[str, Any]:
        headers = self._authorize("can_edit_employee")
        return await self._send("PATCH", f"/employees/{userid}", headers, json=changes)

    async def deactivate_employee(self, userid: str) -> None:
        headers = self._authorize("can_delete_employee")
        await self._send("DELETE", f"/employees/{userid}", headers)

    async def check_in(self, *, latitude: float | None = None, longitude: float | None = None) -> dict[str, Any]:
        headers = self._authorize("can_view_attendance")
        return await self._send("POST", "/attendance/check-in", headers, json={"latitude": latitude, "longitude": longitude})

    async def check_out(self) -> dict[str, Any]:
        headers = self._authorize("can_view_attendance")
        return await self._send("POST", "/attendance/check-out", headers)

    async def edit_attendance(self, attendanceid: int, **fields: Any) -> dict[str, Any]:
        headers = self._authorize("can_edit_attendance")
        return await self._send("PATCH", f"/attendance/{attendanceid}", headers, json=fields)

    async def aclose(self) -> None:
        await self._http.aclose()


def build_client(settings: Settings | None = None) -> tuple[HostedAuthClient, IdentityResolver, HrApiClient]:
    """
    Wire the auth client, resolver and API client for one process.

    Call ``await resolver.start()`` before the first API call.
    """

    settings = settings or get_settings()
    http = httpx.AsyncClient(timeout=settings.auth_request_timeout_seconds)
    auth = HostedAuthClient(settings.auth_url, anon_key=settings.auth_anon_key, client=http)
    resolver = IdentityResolver(
        auth,
        ApiProfileLookup(settings.api_base_url, client=http),
        timeout_seconds=settings.profile_lookup_timeout_seconds,
    )
    return auth, resolver, HrApiClient(settings.api_base_url, resolver, client=http)
