# backend/beauty_booking/schemas/reschedule_requests.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from .bookings import BookingRead, Party


class RescheduleRequestCreate(BaseModel):
    requested_by: Party
    new_date: date
    new_time: str = Field(description="HH:MM, provider local time")
    reason: Optional[str] = None


class RescheduleRequestRead(BaseModel):
    id: int
    booking_id: int

    requested_by: str
    new_date: date
    new_time: str
    reason: Optional[str] = None

    status: str
    response_reason: Optional[str] = None

    requested_at: datetime
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RescheduleRequestApprove(BaseModel):
    responder: Party


class RescheduleRequestDeny(BaseModel):
    responder: Party
    reason: Optional[str] = None


class RescheduleRequestApproved(BaseModel):
    request: RescheduleRequestRead
    booking: BookingRead
