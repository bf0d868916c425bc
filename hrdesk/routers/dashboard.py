from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrdesk.db.session import get_db
from hrdesk.schemas.dashboard import DashboardOut, PersonalDashboardOut
from hrdesk.security.context import CallerContext
from hrdesk.security.dependencies import get_caller
from hrdesk.services.dashboard import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut | PersonalDashboardOut)
def dashboard(
    day: date | None = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> DashboardOut | PersonalDashboardOut:
    service = DashboardService(db, caller)
    if caller.can("can_view_reports"):
        return DashboardOut.model_validate(service.tenant_summary(day))
    return PersonalDashboardOut.model_validate(service.personal_summary(day))
