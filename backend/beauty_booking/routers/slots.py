# backend/beauty_booking/routers/slots.py
"""
Slots API endpoints.

GET /slots/day      - Bookable slots for a service on a day
GET /slots/calendar - Per-day open slot counts for a date range
"""

from datetime import date, timedelta
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import (
    SlotInfo,
    SlotsCalendarResponse,
    SlotsDayResponse,
    SlotsDayStatus,
)
from ..services.clock import get_clock, to_local
from ..services.schedule import AvailabilitySettings, get_provider
from ..services.slots import (
    calculate_available_days,
    get_available_slots,
    get_booking_config,
)


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    provider_id: int,
    service_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Get available time slots for a service on a specific day."""
    slots = get_available_slots(db, provider_id, service_id, target_date, clock=clock)

    return SlotsDayResponse(
        provider_id=provider_id,
        service_id=service_id,
        date=target_date,
        slots=[SlotInfo(start_time=s.start_time, end_time=s.end_time) for s in slots],
    )


@router.get("/calendar", response_model=SlotsCalendarResponse)
def get_slots_calendar(
    provider_id: int,
    service_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Get calendar of available days for a provider's service."""
    config = get_booking_config()
    settings = AvailabilitySettings.from_provider(get_provider(db, provider_id))

    today = to_local(clock.now(), settings.timezone).date()
    if start_date is None or start_date < today:
        start_date = today
    if end_date is None:
        end_date = today + timedelta(days=settings.advance_booking_days)
    if end_date < start_date:
        end_date = start_date

    days = calculate_available_days(
        db, provider_id, service_id, start_date, end_date, clock=clock, config=config
    )

    return SlotsCalendarResponse(
        provider_id=provider_id,
        service_id=service_id,
        start_date=start_date,
        end_date=days[-1][0] if days else end_date,
        days=[
            SlotsDayStatus(date=dt, has_slots=count > 0, open_slots_count=count)
            for dt, count in days
        ],
        advance_booking_days=settings.advance_booking_days,
        minimum_notice_hours=settings.minimum_notice_hours,
        slot_step_minutes=config.slot_step_minutes,
    )
