from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.db.base import Base
from hrdesk.models.people import Profile
from hrdesk.models.tenancy import TenantOwned, utcnow

ATTENDANCE_STATUSES: tuple[str, ...] = ("Present", "Absent", "Half Day", "On Leave", "Work From Home")


class Attendance(TenantOwned, Base):
    __tablename__ = "attendance"
    # One row per user per calendar day.
    __table_args__ = (UniqueConstraint("userid", "date", name="uq_attendance_user_date"),)

    attendanceid: Mapped[int] = mapped_column(Integer, primary_key=True)
    userid: Mapped[str] = mapped_column(ForeignKey("users.userid"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    checkintime: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    checkouttime: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    locationlat: Mapped[float | None] = mapped_column(Float, nullable=True)
    locationlong: Mapped[float | None] = mapped_column(Float, nullable=True)

    type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    isactive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    createdat: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user: Mapped[Profile] = relationship()
