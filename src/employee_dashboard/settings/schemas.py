from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class UpdateCompanySettingsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: Optional[str] = Field(default=None, alias="companyName", min_length=1)
    company_email: Optional[EmailStr] = Field(default=None, alias="companyEmail")
    company_phone: Optional[str] = Field(default=None, alias="companyPhone")
    company_address: Optional[str] = Field(default=None, alias="companyAddress")
    working_hours_start: Optional[str] = Field(default=None, alias="workingHoursStart", pattern=_HHMM)
    working_hours_end: Optional[str] = Field(default=None, alias="workingHoursEnd", pattern=_HHMM)
    late_arrival_grace_minutes: Optional[int] = Field(default=None, alias="lateArrivalGraceMinutes", ge=0, le=120)
    early_departure_grace_minutes: Optional[int] = Field(
        default=None, alias="earlyDepartureGraceMinutes", ge=0, le=120
    )
    overtime_threshold_hours: Optional[int] = Field(default=None, alias="overtimeThresholdHours", ge=1, le=24)
    working_days_per_week: Optional[int] = Field(default=None, alias="workingDaysPerWeek", ge=1, le=7)
    timezone: Optional[str] = None
    currency: Optional[str] = Field(default=None, max_length=8)
