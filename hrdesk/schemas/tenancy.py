from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class OrganizationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    orgid: int
    orgname: str
    address: str | None
    contactemail: str | None


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    clientid: int
    clientname: str
    orgid: int
    organization: OrganizationOut | None = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    departmentid: int
    departmentname: str
    description: str | None


class BranchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    branchid: int
    branchname: str
    address: str | None
    latitude: float | None
    longitude: float | None


class RoleRefOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    roleid: int
    rolename: str
    description: str | None
