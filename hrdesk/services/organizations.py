from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrdesk.errors import NotFoundError
from hrdesk.models.people import RoleRef
from hrdesk.models.tenancy import Branch, Client, Department, Organization
from hrdesk.security.context import CallerContext


class OrganizationService:
    """
    Organization/client lookups plus the tenant's departments and branches.

    Organizations and clients are not tenant-owned rows, so lookups here are
    narrowed to the caller's scope explicitly.
    """

    def __init__(self, db: Session, caller: CallerContext):
        self._db = db
        self._caller = caller

    def current_organization(self) -> Organization:
        org = self._db.get(Organization, self._caller.scope.org_id)
        if org is None:
            raise NotFoundError("Organization not found")
        return org

    def current_client(self) -> Client:
        stmt = (
            select(Client)
            .where(Client.clientid == self._caller.scope.client_id, Client.orgid == self._caller.scope.org_id)
            .options(selectinload(Client.organization))
        )
        client = self._db.scalars(stmt).first()
        if client is None:
            raise NotFoundError("Client not found")
        return client

    def list_clients(self) -> list[Client]:
        self._caller.require("can_manage_organization")
        stmt = (
            select(Client)
            .where(Client.orgid == self._caller.scope.org_id)
            .options(selectinload(Client.organization))
            .order_by(Client.clientname)
        )
        return list(self._db.scalars(stmt).all())

    def list_departments(self) -> list[Department]:
        stmt = select(Department).where(Department.isactive.is_(True)).order_by(Department.departmentname)
        return list(self._db.scalars(stmt).all())

    def list_branches(self) -> list[Branch]:
        stmt = select(Branch).where(Branch.isactive.is_(True)).order_by(Branch.branchname)
        return list(self._db.scalars(stmt).all())

    def list_roles(self) -> list[RoleRef]:
        stmt = select(RoleRef).where(RoleRef.isactive.is_(True)).order_by(RoleRef.roleid)
        return list(self._db.scalars(stmt).all())
