from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrdesk.db.base import Base
from hrdesk.db.session import engine, system_session
from hrdesk.models.people import Profile, RoleRef
from hrdesk.models.tenancy import Branch, Client, Department, Organization
from hrdesk.security.roles import LEGACY_ROLE_IDS, Role

# Fixed identity tokens so the demo profiles line up with accounts in a local auth stack.
DEMO_ADMIN_ID = "00000000-0000-4000-8000-000000000001"
DEMO_HR_ID = "00000000-0000-4000-8000-000000000002"
DEMO_EMPLOYEE_ID = "00000000-0000-4000-8000-000000000003"
DEMO_OTHER_TENANT_ID = "00000000-0000-4000-8000-000000000004"


def init_db(*, seed: bool = True) -> None:
    """
    Create tables, the role reference rows and (optionally) demo tenants.
    """

    Base.metadata.create_all(bind=engine)

    with system_session() as db:
        ensure_roles(db)
        if seed and not _has_seed_data(db):
            seed_demo(db)


def ensure_roles(db: Session) -> None:
    existing = set(db.scalars(select(RoleRef.roleid)).all())
    descriptions = {
        Role.ADMIN: "Full access, including organization settings",
        Role.HR: "Manages employees and attendance",
        Role.EMPLOYEE: "Self-service attendance",
    }
    for roleid, role in LEGACY_ROLE_IDS.items():
        if roleid not in existing:
            db.add(RoleRef(roleid=roleid, rolename=role.value, description=descriptions[role], isactive=True))
    db.commit()


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Organization.orgid).limit(1)).first() is not None


def seed_demo(db: Session) -> None:
    acme = Organization(orgname="Acme Corp", address="1 Main St", contactemail="ops@acme.example")
    globex = Organization(orgname="Globex", address="9 Side Rd", contactemail="ops@globex.example")
    db.add_all([acme, globex])
    db.flush()

    acme_hq = Client(clientname="Acme HQ", orgid=acme.orgid)
    globex_main = Client(clientname="Globex Main", orgid=globex.orgid)
    db.add_all([acme_hq, globex_main])
    db.flush()

    eng = Department(orgid=acme.orgid, clientid=acme_hq.clientid, departmentname="Engineering")
    people = Department(orgid=acme.orgid, clientid=acme_hq.clientid, departmentname="People Ops")
    downtown = Branch(
        orgid=acme.orgid,
        clientid=acme_hq.clientid,
        branchname="Downtown",
        address="1 Main St",
        latitude=40.7128,
        longitude=-74.0060,
    )
    db.add_all([eng, people, downtown])
    db.flush()

    db.add_all(
        [
            Profile(
                userid=DEMO_ADMIN_ID,
                email="admin@acme.example",
                fullname="Alice Admin",
                role=Role.ADMIN,
                orgid=acme.orgid,
                clientid=acme_hq.clientid,
                departmentid=people.departmentid,
                branchid=downtown.branchid,
            ),
            Profile(
                userid=DEMO_HR_ID,
                email="hr@acme.example",
                fullname="Harry HR",
                role=Role.HR,
                orgid=acme.orgid,
                clientid=acme_hq.clientid,
                departmentid=people.departmentid,
                branchid=downtown.branchid,
            ),
            Profile(
                userid=DEMO_EMPLOYEE_ID,
                email="ed@acme.example",
                fullname="Ed Engineer",
                role=Role.EMPLOYEE,
                orgid=acme.orgid,
                clientid=acme_hq.clientid,
                departmentid=eng.departmentid,
                branchid=downtown.branchid,
                managerid=DEMO_HR_ID,
            ),
            Profile(
                userid=DEMO_OTHER_TENANT_ID,
                email="gina@globex.example",
                fullname="Gina Globex",
                role=Role.ADMIN,
                orgid=globex.orgid,
                clientid=globex_main.clientid,
            ),
        ]
    )
    db.commit()
