from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrdesk.models.attendance import Attendance
from hrdesk.models.people import Profile
from hrdesk.models.tenancy import utcnow
from hrdesk.security.context import CallerContext
from hrdesk.services.attendance import month_bounds

PRESENT_STATUSES = frozenset({"Present", "Half Day", "Work From Home"})


@dataclass(frozen=True)
class ActivityEvent:
    userid: str
    fullname: str
    action: str
    at: datetime

    @property
    def direction(self) -> str:
        return "in" if self.action == "Checked in" else "out"


@dataclass(frozen=True)
class DashboardSummary:
    day: date
    total_employees: int
    present: int
    absent: int
    checked_out: int
    attendance_rate: float
    monthly_attendance_rate: float
    recent_activity: list[ActivityEvent] = field(default_factory=list)


@dataclass(frozen=True)
class PersonalSummary:
    day: date
    checked_in: bool
    checked_out: bool
    days_present_this_month: int
    working_days_so_far: int


def _rate(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 1)


class DashboardService:
    """Figures for the dashboard, computed from the caller's tenant only."""

    def __init__(self, db: Session, caller: CallerContext, *, clock: Callable[[], datetime] = utcnow):
        self._db = db
        self._caller = caller
        self._clock = clock

    def tenant_summary(self, day: date | None = None, *, activity_limit: int = 5) -> DashboardSummary:
        self._caller.require("can_view_reports")
        day = day or self._clock().date()

        employees = list(self._db.scalars(select(Profile)).all())
        active_ids = {p.userid for p in employees}

        todays = [r for r in self._rows_between(day, day) if r.userid in active_ids]
        present = {r.userid for r in todays if r.checkintime is not None and (r.status or "Present") in PRESENT_STATUSES}
        checked_out = {r.userid for r in todays if r.checkouttime is not None}

        start, _ = month_bounds(day.year, day.month)
        month_rows = [r for r in self._rows_between(start, day) if r.userid in active_ids]
        month_present = sum(
            1 for r in month_rows if r.checkintime is not None and (r.status or "Present") in PRESENT_STATUSES
        )
        days_elapsed = (day - start).days + 1

        return DashboardSummary(
            day=day,
            total_employees=len(employees),
            present=len(present),
            absent=max(len(employees) - len(present), 0),
            checked_out=len(checked_out),
            attendance_rate=_rate(len(present), len(employees)),
            monthly_attendance_rate=_rate(month_present, len(employees) * days_elapsed),
            recent_activity=self.recent_activity(limit=activity_limit),
        )

    def personal_summary(self, day: date | None = None) -> PersonalSummary:
        day = day or self._clock().date()
        start, _ = month_bounds(day.year, day.month)
        mine = [r for r in self._rows_between(start, day) if r.userid == self._caller.user_id]
        today = next((r for r in mine if r.date == day), None)
        return PersonalSummary(
            day=day,
            checked_in=today is not None and today.checkintime is not None,
            checked_out=today is not None and today.checkouttime is not None,
            days_present_this_month=sum(1 for r in mine if r.checkintime is not None),
            working_days_so_far=(day - start).days + 1,
        )

    def recent_activity(self, *, limit: int = 5) -> list[ActivityEvent]:
        """Latest check-in/check-out events across the tenant."""

        stmt = (
            select(Attendance)
            .where(Attendance.checkintime.is_not(None))
            .options(selectinload(Attendance.user))
            .order_by(Attendance.updatedat.desc())
            .limit(limit * 2)
        )
        events: list[ActivityEvent] = []
        for row in self._db.scalars(stmt).all():
            if row.user is None:
                continue
            events.append(ActivityEvent(row.userid, row.user.fullname, "Checked in", row.checkintime))
            if row.checkouttime is not None:
                events.append(ActivityEvent(row.userid, row.user.fullname, "Checked out", row.checkouttime))
        events.sort(key=lambda e: e.at, reverse=True)
        return events[:limit]

    def _rows_between(self, start: date, end: date) -> list[Attendance]:
        stmt = select(Attendance).where(Attendance.date >= start, Attendance.date <= end)
        return list(self._db.scalars(stmt).all())
