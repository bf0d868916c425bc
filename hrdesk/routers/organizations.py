from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrdesk.db.session import get_db
from hrdesk.schemas.tenancy import BranchOut, ClientOut, DepartmentOut, RoleRefOut
from hrdesk.security.context import CallerContext
from hrdesk.security.decorators import require_capability
from hrdesk.security.dependencies import get_caller
from hrdesk.services.organizations import OrganizationService

router = APIRouter(tags=["organization"])


@router.get("/organization", response_model=ClientOut)
def current_organization(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)):
    return OrganizationService(db, caller).current_client()


@router.get("/organization/clients", response_model=list[ClientOut])
@require_capability("can_manage_organization")
def list_clients(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)):
    return OrganizationService(db, caller).list_clients()


@router.get("/departments", response_model=list[DepartmentOut])
def list_departments(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)):
    return OrganizationService(db, caller).list_departments()


@router.get("/branches", response_model=list[BranchOut])
def list_branches(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)):
    return OrganizationService(db, caller).list_branches()


@router.get("/roles", response_model=list[RoleRefOut])
def list_roles(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)):
    return OrganizationService(db, caller).list_roles()
