from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, computed_field

from hrdesk.services.attendance import format_duration


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attendanceid: int
    userid: str
    orgid: int
    clientid: int
    date: dt.date
    checkintime: dt.datetime | None
    checkouttime: dt.datetime | None
    locationlat: float | None
    locationlong: float | None
    type: str | None
    method: str | None
    status: str | None
    remarks: str | None

    @computed_field
    @property
    def duration(self) -> str:
        return format_duration(self.checkintime, self.checkouttime)


class AttendanceWithUserOut(AttendanceOut):
    fullname: str | None = None


class CheckInRequest(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class AttendanceEdit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    checkintime: dt.datetime | None = None
    checkouttime: dt.datetime | None = None
    status: str | None = None
    remarks: str | None = None
