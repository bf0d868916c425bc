"""
Fixtures for HTTP-level tests.

The app is built with `create_app()` but its lifespan is not run: state is
set directly and the DB dependencies are pointed at the test engine.
"""
from __future__ import annotations

import httpx
import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from hrdesk.db.session import get_db, get_system_db, system_session
from hrdesk.main import create_app
from hrdesk.security.config import load_security_config
from hrdesk.security.tokens import SessionTokenValidator
from hrdesk.services.provisioning import UserProvisioner
from tests.conftest import REPO_ROOT, TEST_JWT_SECRET, USERS, make_token
from tests.fakes import FakeAuthAdmin


@pytest.fixture
def tokens() -> dict[str, str]:
    return {name: make_token(user_id, email) for name, (user_id, email) in USERS.items()}


@pytest.fixture
def auth_admin(tokens) -> FakeAuthAdmin:
    return FakeAuthAdmin({tokens[name]: USERS[name] for name in USERS})


@pytest.fixture
def app(session_factory, tenants, auth_admin):
    application = create_app()
    application.state.security_config = load_security_config(REPO_ROOT / "config" / "security_config.yaml")
    application.state.token_validator = SessionTokenValidator(TEST_JWT_SECRET)
    application.state.provisioner = UserProvisioner(session_factory, auth_admin)

    def override_get_db(request: Request):
        db = session_factory()
        caller = getattr(request.state, "caller", None)
        if caller is not None:
            db.info["tenant"] = caller.scope
        try:
            yield db
        finally:
            db.close()

    def override_get_system_db():
        with system_session(session_factory) as db:
            yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_system_db] = override_get_system_db
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth(tokens):
    def _headers(name: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens[name]}"}

    return _headers


@pytest.fixture
def asgi_client(app):
    """An httpx.AsyncClient wired straight to the app (no network)."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://hrdesk.test")
