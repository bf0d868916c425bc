"""
Pytest fixtures for the test suite.

Every test gets a fresh in-memory SQLite engine (StaticPool, so the API
tests can share it across threads) seeded with two tenants:

* tenant A (Acme / Acme HQ): admin, hr and employee profiles, one inactive profile
* tenant B (Globex / Globex Main): admin and employee profiles
"""
from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hrdesk.db import filters as _filters  # noqa: F401  (register tenant-scoping session events)
from hrdesk.db.base import Base
from hrdesk.models import Branch, Client, Department, Organization, Profile
from hrdesk.security.context import CallerContext, TenantScope
from hrdesk.security.roles import Role

TEST_DB_URL = "sqlite://"
TEST_JWT_SECRET = "test-secret-with-at-least-thirty-two-characters"
REPO_ROOT = Path(__file__).resolve().parents[1]

A_ADMIN = "aaaaaaaa-0000-4000-8000-000000000001"
A_HR = "aaaaaaaa-0000-4000-8000-000000000002"
A_EMPLOYEE = "aaaaaaaa-0000-4000-8000-000000000003"
A_INACTIVE = "aaaaaaaa-0000-4000-8000-000000000004"
B_ADMIN = "bbbbbbbb-0000-4000-8000-000000000001"
B_EMPLOYEE = "bbbbbbbb-0000-4000-8000-000000000002"

# Callers used by the HTTP-level tests: name -> (userid, email).
USERS = {
    "admin": (A_ADMIN, "admin@acme.test"),
    "hr": (A_HR, "hr@acme.test"),
    "employee": (A_EMPLOYEE, "ed@acme.test"),
    "globex": (B_ADMIN, "admin@globex.test"),
}


@dataclass(frozen=True)
class Tenants:
    a: TenantScope
    b: TenantScope
    a_department_id: int
    a_branch_id: int
    b_department_id: int


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(tables) -> sessionmaker:
    return sessionmaker(bind=tables, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def system_db(session_factory):
    db = session_factory()
    db.info["system"] = True
    yield db
    db.close()


@pytest.fixture
def tenants(system_db) -> Tenants:
    acme = Organization(orgname="Acme")
    globex = Organization(orgname="Globex")
    system_db.add_all([acme, globex])
    system_db.flush()

    acme_hq = Client(clientname="Acme HQ", orgid=acme.orgid)
    globex_main = Client(clientname="Globex Main", orgid=globex.orgid)
    system_db.add_all([acme_hq, globex_main])
    system_db.flush()

    a_dept = Department(orgid=acme.orgid, clientid=acme_hq.clientid, departmentname="Engineering")
    a_branch = Branch(orgid=acme.orgid, clientid=acme_hq.clientid, branchname="Downtown")
    b_dept = Department(orgid=globex.orgid, clientid=globex_main.clientid, departmentname="Sales")
    system_db.add_all([a_dept, a_branch, b_dept])
    system_db.flush()

    def profile(userid: str, email: str, name: str, role: Role, org: int, client: int, **kw) -> Profile:
        return Profile(userid=userid, email=email, fullname=name, role=role, orgid=org, clientid=client, **kw)

    system_db.add_all(
        [
            profile(A_ADMIN, "admin@acme.test", "Alice Admin", Role.ADMIN, acme.orgid, acme_hq.clientid),
            profile(A_HR, "hr@acme.test", "Harry HR", Role.HR, acme.orgid, acme_hq.clientid),
            profile(
                A_EMPLOYEE,
                "ed@acme.test",
                "Ed Engineer",
                Role.EMPLOYEE,
                acme.orgid,
                acme_hq.clientid,
                departmentid=a_dept.departmentid,
            ),
            profile(
                A_INACTIVE,
                "gone@acme.test",
                "Gone Person",
                Role.EMPLOYEE,
                acme.orgid,
                acme_hq.clientid,
                isactive=False,
                status="Inactive",
            ),
            profile(B_ADMIN, "admin@globex.test", "Gina Globex", Role.ADMIN, globex.orgid, globex_main.clientid),
            profile(B_EMPLOYEE, "bob@globex.test", "Bob Globex", Role.EMPLOYEE, globex.orgid, globex_main.clientid),
        ]
    )
    system_db.commit()

    return Tenants(
        a=TenantScope(org_id=acme.orgid, client_id=acme_hq.clientid),
        b=TenantScope(org_id=globex.orgid, client_id=globex_main.clientid),
        a_department_id=a_dept.departmentid,
        a_branch_id=a_branch.branchid,
        b_department_id=b_dept.departmentid,
    )


@pytest.fixture
def scoped_session(session_factory):
    """Open sessions bound to a tenant scope; all are closed after the test."""
    opened: list[Session] = []

    def _open(scope: TenantScope) -> Session:
        db = session_factory()
        db.info["tenant"] = scope
        opened.append(db)
        return db

    yield _open
    for db in opened:
        db.close()


@pytest.fixture
def caller_for(system_db, tenants) -> Callable[[str], CallerContext]:
    def _caller(userid: str) -> CallerContext:
        row = system_db.get(Profile, userid)
        return CallerContext.for_profile(row)

    return _caller


def make_token(
    user_id: str,
    email: str | None,
    *,
    secret: str = TEST_JWT_SECRET,
    audience: str = "authenticated",
    expires_in: int = 3600,
    role: str | None = None,
) -> str:
    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": audience,
        "exp": now + expires_in,
        "iat": now,
        "session_id": f"session-{user_id}",
        "app_metadata": {"provider": "email", "role": role} if role else {"provider": "email"},
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")
