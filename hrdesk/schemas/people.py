from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from hrdesk.schemas.tenancy import BranchOut, ClientOut, DepartmentOut, OrganizationOut
from hrdesk.security.roles import Role


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    userid: str
    email: str
    fullname: str
    role: Role
    orgid: int
    clientid: int
    departmentid: int | None
    branchid: int | None
    managerid: str | None
    status: str
    isactive: bool
    createdat: datetime
    updatedat: datetime


class ProfileDetailsOut(ProfileOut):
    organization: OrganizationOut | None = None
    client: ClientOut | None = None
    department: DepartmentOut | None = None
    branch: BranchOut | None = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fullname: str | None = None
    departmentid: int | None = None
    branchid: int | None = None
    managerid: str | None = None
    role: Role | None = None


class MeOut(BaseModel):
    principal: dict[str, object]
    profile: ProfileDetailsOut
    permissions: dict[str, bool]
