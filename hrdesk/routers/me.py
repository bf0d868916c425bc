from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from hrdesk.models.people import Profile
from hrdesk.schemas.people import MeOut, ProfileDetailsOut
from hrdesk.security.context import CallerContext
from hrdesk.security.dependencies import get_caller, get_current_profile

router = APIRouter(tags=["me"])


@router.get("/me", response_model=MeOut)
def me(
    request: Request,
    profile: Profile = Depends(get_current_profile),
    caller: CallerContext = Depends(get_caller),
) -> MeOut:
    return MeOut(
        principal=request.state.principal.to_dict(),
        profile=ProfileDetailsOut.model_validate(profile),
        permissions=caller.permissions.to_dict(),
    )
