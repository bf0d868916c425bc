from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrdesk.db.session import get_db
from hrdesk.models.attendance import Attendance
from hrdesk.schemas.attendance import AttendanceEdit, AttendanceOut, AttendanceWithUserOut, CheckInRequest
from hrdesk.security.context import CallerContext
from hrdesk.security.dependencies import get_caller
from hrdesk.services.attendance import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/check-in", response_model=AttendanceOut, status_code=201)
def check_in(
    payload: CheckInRequest | None = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Attendance:
    payload = payload or CheckInRequest()
    return AttendanceService(db, caller).check_in(latitude=payload.latitude, longitude=payload.longitude)


@router.post("/check-out", response_model=AttendanceOut)
def check_out(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)) -> Attendance:
    return AttendanceService(db, caller).check_out()


@router.get("/today", response_model=AttendanceOut | None)
def today(db: Session = Depends(get_db), caller: CallerContext = Depends(get_caller)) -> Attendance | None:
    return AttendanceService(db, caller).today()


@router.get("/history", response_model=list[AttendanceOut])
def history(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> list[Attendance]:
    return AttendanceService(db, caller).history(year, month)


@router.get("", response_model=list[AttendanceWithUserOut])
def list_attendance(
    start: date,
    end: date,
    userid: str | None = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> list[AttendanceWithUserOut]:
    rows = AttendanceService(db, caller).list_records(start, end, userid=userid)
    return [
        AttendanceWithUserOut.model_validate(row).model_copy(
            update={"fullname": row.user.fullname if row.user else None}
        )
        for row in rows
    ]


@router.patch("/{attendanceid}", response_model=AttendanceOut)
def edit_attendance(
    attendanceid: int,
    payload: AttendanceEdit,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Attendance:
    return AttendanceService(db, caller).edit(attendanceid, **payload.model_dump(exclude_unset=True))
