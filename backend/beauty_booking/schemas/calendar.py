# backend/beauty_booking/schemas/calendar.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class DayRuleSchema(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str = Field(description="HH:MM")
    end_time: str = Field(description="HH:MM")
    is_available: bool = True

    model_config = {"from_attributes": True}


class AvailabilityUpdate(BaseModel):
    schedule: list[DayRuleSchema]

    timezone: Optional[str] = None
    advance_booking_days: Optional[int] = None
    minimum_notice_hours: Optional[int] = None
    buffer_minutes: Optional[int] = None
    same_day_booking: Optional[bool] = None

    model_config = {"from_attributes": True}


class AvailabilityRead(BaseModel):
    provider_id: int
    schedule: list[DayRuleSchema]

    timezone: str
    advance_booking_days: int
    minimum_notice_hours: int
    buffer_minutes: int
    same_day_booking: bool

    model_config = {"from_attributes": True}


class TimeOffCreate(BaseModel):
    start_date: date
    end_date: date
    all_day: bool = True
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class TimeOffRead(BaseModel):
    id: int
    provider_id: int

    start_date: date
    end_date: date
    all_day: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    created_at: datetime

    model_config = {"from_attributes": True}
