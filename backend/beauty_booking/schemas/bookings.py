# backend/beauty_booking/schemas/bookings.py

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field

Party = Literal["client", "provider"]


class BookingCreate(BaseModel):
    provider_id: int
    client_id: int
    service_id: int

    appointment_date: date
    appointment_time: str = Field(description="HH:MM, provider local time")

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int

    provider_id: int
    client_id: int
    service_id: int

    appointment_date: date
    appointment_time: str
    appointment_end_time: str
    duration_minutes: int

    status: str

    service_price: Decimal
    deposit_amount: Decimal
    service_fee: Decimal
    total_amount: Decimal
    balance_paid: Decimal
    currency: str
    payment_status: str
    payment_provider: Optional[str] = None

    reschedule_count: int
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    no_show_reported_by: Optional[str] = None

    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaymentInstructionRead(BaseModel):
    id: int
    booking_id: int
    kind: str
    amount: Decimal
    currency: str
    recipient: str
    payment_provider: Optional[str] = None
    reason: Optional[str] = None
    status: str

    created_at: datetime

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    initiator: Party
    reason: Optional[str] = None


class BookingReschedule(BaseModel):
    new_date: date
    new_time: str = Field(description="HH:MM, provider local time")


class BookingNoShow(BaseModel):
    reported_by: Party


class BalancePayment(BaseModel):
    amount: Decimal = Field(gt=0)


class TransitionResponse(BaseModel):
    """Booking after a money-moving transition."""
    booking: BookingRead
    fee: Decimal
    refund: Decimal
    instructions: list[PaymentInstructionRead] = []

    model_config = {"from_attributes": True}


class CancellationPreview(BaseModel):
    booking_id: int
    initiator: Party
    fee: Decimal
    refund: Decimal
    can_reschedule: bool
