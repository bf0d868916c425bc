from __future__ import annotations

import calendar
import logging
from collections.abc import Callable
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from hrdesk.errors import ConflictError, NotFoundError, ValidationError
from hrdesk.models.attendance import ATTENDANCE_STATUSES, Attendance
from hrdesk.models.tenancy import as_naive_utc, utcnow
from hrdesk.security.context import CallerContext

logger = logging.getLogger(__name__)

_UNSET = object()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def format_duration(checkin: datetime | None, checkout: datetime | None) -> str:
    if checkin is None:
        return "-"
    if checkout is None:
        return "In Progress"
    total_minutes = int((checkout - checkin).total_seconds() // 60)
    hours, minutes = divmod(max(total_minutes, 0), 60)
    return f"{hours}h {minutes}m"


class AttendanceService:
    """
    Daily check-in/check-out for the caller, and HR edits within the tenant.

    Rows are stamped with the caller's scope by the session (see db/filters.py);
    `userid` is always the acting profile for self-service flows.
    """

    def __init__(self, db: Session, caller: CallerContext, *, clock: Callable[[], datetime] = utcnow):
        self._db = db
        self._caller = caller
        self._clock = clock

    def today(self, *, now: datetime | None = None) -> Attendance | None:
        now = now or self._clock()
        return self._for_user_and_date(self._caller.user_id, now.date())

    def check_in(
        self,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
        now: datetime | None = None,
    ) -> Attendance:
        self._caller.require("can_view_attendance")
        now = now or self._clock()
        today = now.date()

        existing = self._for_user_and_date(self._caller.user_id, today)
        if existing is not None:
            if existing.checkouttime is None:
                raise ConflictError("Already checked in today; check out instead")
            raise ConflictError("Attendance already completed for today")

        record = Attendance(
            orgid=self._caller.scope.org_id,
            clientid=self._caller.scope.client_id,
            userid=self._caller.user_id,
            date=today,
            checkintime=now,
            locationlat=latitude,
            locationlong=longitude,
            type="Regular",
            method="Web",
            status="Present",
            isactive=True,
        )
        self._db.add(record)
        try:
            self._db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent check-in for the same day.
            self._db.rollback()
            raise ConflictError("Already checked in today") from exc

        logger.info("Checked in user=%s date=%s", self._caller.user_id, today.isoformat())
        self._db.refresh(record)
        return record

    def check_out(self, *, now: datetime | None = None) -> Attendance:
        self._caller.require("can_view_attendance")
        now = now or self._clock()

        record = self._for_user_and_date(self._caller.user_id, now.date())
        if record is None:
            raise ConflictError("You have not checked in today")
        if record.checkouttime is not None:
            raise ConflictError("Already checked out today")

        record.checkouttime = now
        self._db.commit()
        logger.info("Checked out user=%s date=%s", self._caller.user_id, record.date.isoformat())
        self._db.refresh(record)
        return record

    def history(self, year: int, month: int) -> list[Attendance]:
        """The caller's own rows for a calendar month, newest first."""

        start, end = month_bounds(year, month)
        stmt = (
            select(Attendance)
            .where(
                Attendance.userid == self._caller.user_id,
                Attendance.date >= start,
                Attendance.date <= end,
            )
            .order_by(Attendance.date.desc())
        )
        return list(self._db.scalars(stmt).all())

    def list_records(self, start: date, end: date, *, userid: str | None = None) -> list[Attendance]:
        """Tenant-wide listing for HR/admin review."""

        self._caller.require("can_edit_attendance")
        if end < start:
            raise ValidationError("end must not be before start")

        stmt = (
            select(Attendance)
            .where(Attendance.date >= start, Attendance.date <= end)
            .options(selectinload(Attendance.user))
            .order_by(Attendance.date.desc(), Attendance.checkintime.desc())
        )
        if userid is not None:
            stmt = stmt.where(Attendance.userid == userid)
        return list(self._db.scalars(stmt).all())

    def edit(
        self,
        attendanceid: int,
        *,
        checkintime: datetime | None | object = _UNSET,
        checkouttime: datetime | None | object = _UNSET,
        status: str | None | object = _UNSET,
        remarks: str | None | object = _UNSET,
    ) -> Attendance:
        # Checked before the row is even looked up.
        self._caller.require("can_edit_attendance")

        record = self._db.scalars(select(Attendance).where(Attendance.attendanceid == attendanceid)).first()
        if record is None:
            raise NotFoundError("Attendance record not found")

        if checkintime is not _UNSET:
            checkintime = as_naive_utc(checkintime)
        if checkouttime is not _UNSET:
            checkouttime = as_naive_utc(checkouttime)

        new_checkin = record.checkintime if checkintime is _UNSET else checkintime
        new_checkout = record.checkouttime if checkouttime is _UNSET else checkouttime
        if new_checkin is not None and new_checkout is not None and new_checkout < new_checkin:
            raise ValidationError("Check-out time cannot be before check-in time")
        if status is not _UNSET and status is not None and status not in ATTENDANCE_STATUSES:
            raise ValidationError(f"Unknown status: {status}")

        if checkintime is not _UNSET:
            record.checkintime = checkintime
        if checkouttime is not _UNSET:
            record.checkouttime = checkouttime
        if status is not _UNSET:
            record.status = status
        if remarks is not _UNSET:
            record.remarks = remarks

        self._db.commit()
        logger.info("Attendance edited id=%s by=%s", attendanceid, self._caller.user_id)
        self._db.refresh(record)
        return record

    def _for_user_and_date(self, userid: str, day: date) -> Attendance | None:
        stmt = select(Attendance).where(Attendance.userid == userid, Attendance.date == day)
        return self._db.scalars(stmt).first()
