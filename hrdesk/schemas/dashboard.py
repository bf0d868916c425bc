from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    userid: str
    fullname: str
    action: str
    at: datetime
    direction: str


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: date
    total_employees: int
    present: int
    absent: int
    checked_out: int
    attendance_rate: float
    monthly_attendance_rate: float
    recent_activity: list[ActivityOut]


class PersonalDashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: date
    checked_in: bool
    checked_out: bool
    days_present_this_month: int
    working_days_so_far: int
