# backend/beauty_booking/routers/calendar.py
"""
Provider calendar settings: weekly availability and time off.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.calendar import (
    AvailabilityRead,
    AvailabilityUpdate,
    DayRuleSchema,
    TimeOffCreate,
    TimeOffRead,
)
from ..services.clock import get_clock, to_local
from ..services.schedule import DayRule, get_provider, get_schedule, update_schedule
from ..services.time_off import create_time_off, delete_time_off, list_time_off

router = APIRouter(prefix="/providers", tags=["calendar"])


def _availability_response(provider_id: int, rules, settings) -> AvailabilityRead:
    return AvailabilityRead(
        provider_id=provider_id,
        schedule=[DayRuleSchema.model_validate(rule) for rule in rules],
        timezone=settings.timezone,
        advance_booking_days=settings.advance_booking_days,
        minimum_notice_hours=settings.minimum_notice_hours,
        buffer_minutes=settings.buffer_minutes,
        same_day_booking=settings.same_day_booking,
    )


@router.get("/{provider_id}/availability", response_model=AvailabilityRead)
def get_availability(provider_id: int, db: Session = Depends(get_db)):
    rules, settings = get_schedule(db, provider_id)
    return _availability_response(provider_id, rules, settings)


@router.put("/{provider_id}/availability", response_model=AvailabilityRead)
def put_availability(
    provider_id: int,
    data: AvailabilityUpdate,
    db: Session = Depends(get_db),
):
    rules, settings = update_schedule(
        db,
        provider_id,
        [DayRule(**rule.model_dump()) for rule in data.schedule],
        **data.model_dump(exclude={"schedule"}),
    )
    return _availability_response(provider_id, rules, settings)


@router.get("/{provider_id}/time-off", response_model=list[TimeOffRead])
def get_time_off(
    provider_id: int,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Current and upcoming time off; "today" is the provider's local date."""
    _, settings = get_schedule(db, provider_id)
    today = to_local(clock.now(), settings.timezone).date()
    return list_time_off(db, provider_id, today)


@router.post(
    "/{provider_id}/time-off", response_model=TimeOffRead, status_code=status.HTTP_201_CREATED
)
def post_time_off(
    provider_id: int,
    data: TimeOffCreate,
    db: Session = Depends(get_db),
):
    return create_time_off(db, provider_id, **data.model_dump())


@router.delete("/{provider_id}/time-off/{time_off_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_time_off(
    provider_id: int,
    time_off_id: int,
    db: Session = Depends(get_db),
):
    get_provider(db, provider_id)
    delete_time_off(db, provider_id, time_off_id)
