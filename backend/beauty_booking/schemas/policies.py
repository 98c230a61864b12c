# backend/beauty_booking/schemas/policies.py

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class PoliciesRead(BaseModel):
    provider_id: int

    cancellation_window_hours: int
    cancellation_fee_percentage: Decimal
    late_grace_period_minutes: int
    late_cancellation_after_minutes: int
    no_show_fee_percentage: Decimal
    reschedule_allowed: bool
    reschedule_window_hours: int
    max_reschedules: int

    model_config = {"from_attributes": True}


class PoliciesUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    cancellation_window_hours: Optional[int] = None
    cancellation_fee_percentage: Optional[Decimal] = None
    late_grace_period_minutes: Optional[int] = None
    late_cancellation_after_minutes: Optional[int] = None
    no_show_fee_percentage: Optional[Decimal] = None
    reschedule_allowed: Optional[bool] = None
    reschedule_window_hours: Optional[int] = None
    max_reschedules: Optional[int] = None

    model_config = {"from_attributes": True}
