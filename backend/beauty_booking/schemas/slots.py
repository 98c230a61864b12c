# backend/beauty_booking/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """A bookable start, provider local time."""
    start_time: str  # "HH:MM"
    end_time: str

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Bookable slots for a service on a day (Level 2)."""
    provider_id: int
    service_id: int
    date: date
    slots: list[SlotInfo]

    model_config = {"from_attributes": True}


class SlotsDayStatus(BaseModel):
    """Status of a single day in calendar."""
    date: date
    has_slots: bool
    open_slots_count: int = 0

    model_config = {"from_attributes": True}


class SlotsCalendarResponse(BaseModel):
    """Response with calendar of available days."""
    provider_id: int
    service_id: int
    start_date: date
    end_date: date
    days: list[SlotsDayStatus]

    # Metadata
    advance_booking_days: int
    minimum_notice_hours: int
    slot_step_minutes: int = Field(description="Grid step in minutes (15/30/60)")

    model_config = {"from_attributes": True}
