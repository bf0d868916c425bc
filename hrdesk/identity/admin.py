"""
Client for the hosted auth service's user endpoints (server side).

Two kinds of calls:

* ``get_user(access_token)`` runs with the *caller's* token and the public
  (anon) key: it answers "who is calling?".
* ``create_user`` / ``update_app_metadata`` / ``delete_user`` run with the
  service-role key and must never be reachable from a client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)


class AuthAdminError(Exception):
    """The hosted auth service rejected a request or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class IdentityRecord:
    id: str
    email: str | None
    app_metadata: dict[str, Any]


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


def _json_body(resp: requests.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError as exc:
        raise AuthAdminError("Auth service returned a non-JSON body", status_code=resp.status_code) from exc
    if not isinstance(body, dict):
        raise AuthAdminError("Auth service returned an unexpected body", status_code=resp.status_code)
    return body


def _to_record(resp: requests.Response) -> IdentityRecord:
    body = _json_body(resp)
    if not body.get("id"):
        raise AuthAdminError("Auth service response has no user id", status_code=resp.status_code)
    return IdentityRecord(
        id=str(body["id"]),
        email=body.get("email"),
        app_metadata=dict(body.get("app_metadata") or {}),
    )


class AuthAdminClient:
    def __init__(
        self,
        base_url: str,
        *,
        anon_key: str,
        service_role_key: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base = base_url.rstrip("/") + "/auth/v1"
        self._anon_key = anon_key
        self._service_key = service_role_key
        self._timeout = timeout
        self._http = session or requests.Session()

    def _admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return self._http.request(method, f"{self._base}{path}", timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Auth service unreachable method=%s path=%s: %s", method, path, type(exc).__name__)
            raise AuthAdminError("Auth service unavailable") from exc

    def get_user(self, access_token: str) -> IdentityRecord | None:
        """The identity behind a caller's access token, or None if the token is not accepted."""

        resp = self._request(
            "GET",
            "/user",
            headers={"apikey": self._anon_key, "Authorization": f"Bearer {access_token}"},
        )
        if resp.status_code in (401, 403):
            return None
        if resp.status_code != 200:
            raise AuthAdminError(_error_message(resp), status_code=resp.status_code)
        if not _json_body(resp).get("id"):
            return None
        return _to_record(resp)

    def create_user(self, email: str, password: str, *, full_name: str) -> IdentityRecord:
        resp = self._request(
            "POST",
            "/admin/users",
            headers=self._admin_headers(),
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"full_name": full_name},
            },
        )
        if resp.status_code not in (200, 201):
            raise AuthAdminError(_error_message(resp), status_code=resp.status_code)
        record = _to_record(resp)
        logger.info("Login identity created id=%s", record.id)
        return record

    def update_app_metadata(self, user_id: str, app_metadata: dict[str, Any]) -> IdentityRecord:
        resp = self._request(
            "PUT",
            f"/admin/users/{user_id}",
            headers=self._admin_headers(),
            json={"app_metadata": app_metadata},
        )
        if resp.status_code != 200:
            raise AuthAdminError(_error_message(resp), status_code=resp.status_code)
        return _to_record(resp)

    def delete_user(self, user_id: str) -> None:
        resp = self._request("DELETE", f"/admin/users/{user_id}", headers=self._admin_headers())
        if resp.status_code not in (200, 204):
            raise AuthAdminError(_error_message(resp), status_code=resp.status_code)
        logger.info("Login identity deleted id=%s", user_id)
