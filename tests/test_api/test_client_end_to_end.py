"""
End-to-end: identity resolver + permission-gated API client against the app.

Requests go through `httpx.ASGITransport`, so the server-side checks run too.
Calls the caller may not make are refused before any request leaves the client.
"""
from __future__ import annotations

import asyncio

import httpx
import pytest

from hrdesk.client import HrApiClient, build_client, generate_password
from hrdesk.errors import AuthError, ForbiddenError
from hrdesk.identity.hosted import ApiProfileLookup
from hrdesk.identity.resolver import SIGNED_OUT, IdentityResolver
from hrdesk.identity.session import AuthSession, Principal
from hrdesk.security.roles import Role
from hrdesk.settings import Settings
from tests.conftest import A_EMPLOYEE, USERS
from tests.fakes import FakeAuth

BASE = "http://hrdesk.test"


class Recorder:
    """Transport that records requests instead of sending them."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(500, json={"detail": "should not be called"})


async def _resolver(app, tokens, name: str | None) -> IdentityResolver:
    session = None
    if name is not None:
        user_id, email = USERS[name]
        session = AuthSession(
            access_token=tokens[name],
            refresh_token=None,
            expires_at=None,
            principal=Principal(user_id=user_id, email=email),
        )
    lookup = ApiProfileLookup(BASE, client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app)))
    resolver = IdentityResolver(FakeAuth(session), lookup)
    await resolver.start()
    return resolver


async def _client(app, tokens, name: str | None) -> HrApiClient:
    resolver = await _resolver(app, tokens, name)
    return HrApiClient(BASE, resolver, client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app)))


async def _recording_client(app, tokens, name: str | None) -> tuple[HrApiClient, Recorder]:
    resolver = await _resolver(app, tokens, name)
    recorder = Recorder()
    return HrApiClient(BASE, resolver, client=httpx.AsyncClient(transport=httpx.MockTransport(recorder))), recorder


def test_resolver_reads_profile_through_api(app, tokens):
    async def run():
        return (await _resolver(app, tokens, "hr")).snapshot

    snapshot = asyncio.run(run())
    assert snapshot.profile.role is Role.HR
    assert snapshot.profile.email == "hr@acme.test"
    assert snapshot.permissions.can_create_employee is True


def test_hr_creates_employee(app, tokens, auth_admin):
    async def run():
        client = await _client(app, tokens, "hr")
        created = await client.create_employee(email="newbie@acme.test", fullname="New Bie")
        listed = await client.list_employees(search="newbie")
        return created, listed

    created, listed = asyncio.run(run())
    assert created["success"] is True
    assert created["dbUser"]["role"] == "employee"
    assert [p["email"] for p in listed] == ["newbie@acme.test"]
    assert auth_admin.called("create_user") == ["newbie@acme.test"]


def test_employee_create_is_refused_before_any_request(app, tokens, auth_admin):
    async def run():
        client, recorder = await _recording_client(app, tokens, "employee")
        with pytest.raises(ForbiddenError):
            await client.create_employee(email="x@acme.test", fullname="X")
        return recorder

    recorder = asyncio.run(run())
    assert recorder.requests == []
    assert auth_admin.called("create_user") == []


def test_admin_deletes_employee(app, tokens):
    async def run():
        client = await _client(app, tokens, "admin")
        await client.deactivate_employee(A_EMPLOYEE)
        return await client.list_employees()

    remaining = {p["userid"] for p in asyncio.run(run())}
    assert A_EMPLOYEE not in remaining


def test_hr_delete_is_refused_before_any_request(app, tokens):
    async def run():
        client, recorder = await _recording_client(app, tokens, "hr")
        with pytest.raises(ForbiddenError):
            await client.deactivate_employee(A_EMPLOYEE)
        return recorder

    assert asyncio.run(run()).requests == []


def test_employee_attendance_round(app, tokens):
    async def run():
        client = await _client(app, tokens, "employee")
        checked_in = await client.check_in(latitude=10.0, longitude=20.0)
        checked_out = await client.check_out()
        with pytest.raises(ForbiddenError):
            await client.edit_attendance(checked_in["attendanceid"], status="Absent")
        return checked_in, checked_out

    checked_in, checked_out = asyncio.run(run())
    assert checked_in["status"] == "Present"
    assert checked_out["checkouttime"] is not None


def test_signed_out_client_refuses_everything(app, tokens):
    async def run():
        client, recorder = await _recording_client(app, tokens, None)
        with pytest.raises(AuthError):
            await client.list_employees()
        return recorder

    assert asyncio.run(run()).requests == []


def test_generate_password():
    password = generate_password()
    assert len(password) == 12
    assert generate_password(20) != generate_password(20)


def test_build_client_from_settings():
    settings = Settings(
        api_base_url="http://api.test",
        auth_url="http://auth.test",
        profile_lookup_timeout_seconds=0.5,
    )

    async def run():
        auth, resolver, client = build_client(settings)
        snapshot = await resolver.start()
        await client.aclose()
        return snapshot

    assert asyncio.run(run()) == SIGNED_OUT
