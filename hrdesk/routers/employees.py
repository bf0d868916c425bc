from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from hrdesk.db.session import get_db
from hrdesk.models.people import Profile
from hrdesk.schemas.people import ProfileDetailsOut, ProfileUpdate
from hrdesk.security.context import CallerContext
from hrdesk.security.dependencies import get_caller
from hrdesk.services.profiles import ProfileService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[ProfileDetailsOut])
def list_employees(
    include_inactive: bool = False,
    search: str | None = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> list[Profile]:
    return ProfileService(db, caller).list_profiles(include_inactive=include_inactive, search=search)


@router.get("/{userid}", response_model=ProfileDetailsOut)
def get_employee(
    userid: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Profile:
    # Rows of other tenants and deactivated rows both come back as 404.
    return ProfileService(db, caller).get(userid)


@router.patch("/{userid}", response_model=ProfileDetailsOut)
def update_employee(
    userid: str,
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Profile:
    return ProfileService(db, caller).update(userid, payload.model_dump(exclude_unset=True))


@router.delete("/{userid}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_employee(
    userid: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Response:
    ProfileService(db, caller).deactivate(userid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
