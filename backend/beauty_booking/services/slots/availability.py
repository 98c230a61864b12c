"""
Level 2: bookable slots for a service on a specific day.

Takes into account:
- Open windows (Level 1: weekly schedule minus time off)
- Booking window (advance_booking_days, same-day toggle)
- Minimum notice before a slot starts
- Existing pending/confirmed bookings, each extended by the provider buffer

The slot grid is computed in provider-local wall time. "now" is converted to
local time once, at the start of the call. Minimum notice is checked against
absolute instants, so a daylight-saving day still gets the full notice.
Nothing is cached: each call builds a fresh, single-use sequence.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Bookings, Providers, Services
from ..clock import get_clock, to_local
from ..errors import NotFound
from ..schedule import AvailabilitySettings, get_provider
from ..timeutil import (
    Interval,
    date_range,
    local_datetime,
    minutes_to_time_str,
    normalize_time_str,
    overlaps,
    time_str_to_minutes,
)
from .calculator import calculate_open_windows, generate_candidates, is_bookable_date
from .config import BookingConfig, get_booking_config


@dataclass(frozen=True)
class TimeSlot:
    start_time: str  # "HH:MM", provider local
    end_time: str


def iter_available_slots(
    db: Session,
    provider_id: int,
    service_id: int,
    target_date: date,
    clock=None,
    config: BookingConfig | None = None,
) -> Iterator[TimeSlot]:
    """
    Available slots for a service, ascending.

    Unknown provider/service raises NotFound immediately; "no slots" is an
    empty sequence, never an error.
    """
    provider = get_provider(db, provider_id)
    service = get_service(db, service_id, provider_id)
    now = (clock or get_clock()).now()

    return generate_slots(
        db,
        provider,
        service.duration_minutes,
        target_date,
        now,
        config or get_booking_config(),
    )


def get_available_slots(
    db: Session,
    provider_id: int,
    service_id: int,
    target_date: date,
    clock=None,
    config: BookingConfig | None = None,
) -> list[TimeSlot]:
    return list(iter_available_slots(db, provider_id, service_id, target_date, clock, config))


def generate_slots(
    db: Session,
    provider: Providers,
    duration_minutes: int,
    target_date: date,
    now: datetime,
    config: BookingConfig,
    exclude_booking_id: int | None = None,
) -> Iterator[TimeSlot]:
    settings = AvailabilitySettings.from_provider(provider)
    local_now = to_local(now, settings.timezone)

    # Step 1: Booking window
    if not is_bookable_date(target_date, local_now.date(), settings):
        return

    # Step 2: Open windows (schedule minus time off)
    windows = calculate_open_windows(db, provider.id, target_date)
    if not windows:
        return

    # Minimum notice is elapsed time, measured in UTC
    tz = ZoneInfo(settings.timezone)
    earliest_start = now.astimezone(timezone.utc) + timedelta(hours=settings.minimum_notice_hours)
    busy = get_busy_intervals(
        db, provider.id, target_date, settings.buffer_minutes, exclude_booking_id
    )

    # Step 3: Walk candidates
    for start in generate_candidates(windows, duration_minutes, config.slot_step_minutes):
        start_str = minutes_to_time_str(start)

        slot_start = local_datetime(target_date, start_str).replace(tzinfo=tz)
        if slot_start.astimezone(timezone.utc) < earliest_start:
            continue

        candidate = (start, start + duration_minutes + settings.buffer_minutes)
        if any(overlaps(candidate, interval) for interval in busy):
            continue

        yield TimeSlot(
            start_time=start_str,
            end_time=minutes_to_time_str(start + duration_minutes),
        )


def is_slot_available(
    db: Session,
    provider: Providers,
    duration_minutes: int,
    target_date: date,
    time_str: str,
    now: datetime,
    config: BookingConfig | None = None,
    exclude_booking_id: int | None = None,
) -> bool:
    """Re-check that a start time is still among the computed slots."""
    try:
        wanted = normalize_time_str(time_str)
    except ValueError:
        return False

    return any(
        slot.start_time == wanted
        for slot in generate_slots(
            db,
            provider,
            duration_minutes,
            target_date,
            now,
            config or get_booking_config(),
            exclude_booking_id,
        )
    )


def has_conflict(
    db: Session,
    provider_id: int,
    target_date: date,
    time_str: str,
    duration_minutes: int,
    buffer_minutes: int,
    exclude_booking_id: int | None = None,
) -> bool:
    """True if the buffered interval collides with another live booking."""
    start = time_str_to_minutes(time_str)
    candidate = (start, start + duration_minutes + buffer_minutes)
    busy = get_busy_intervals(db, provider_id, target_date, buffer_minutes, exclude_booking_id)
    return any(overlaps(candidate, interval) for interval in busy)


def calculate_available_days(
    db: Session,
    provider_id: int,
    service_id: int,
    start_date: date,
    end_date: date,
    clock=None,
    config: BookingConfig | None = None,
) -> list[tuple[date, int]]:
    """Per-day open slot counts for a date range (calendar view)."""
    config = config or get_booking_config()
    provider = get_provider(db, provider_id)
    service = get_service(db, service_id, provider_id)
    now = (clock or get_clock()).now()

    end_date = min(end_date, start_date + timedelta(days=config.calendar_max_days - 1))

    days = []
    for dt in date_range(start_date, end_date):
        count = sum(
            1 for _ in generate_slots(db, provider, service.duration_minutes, dt, now, config)
        )
        days.append((dt, count))
    return days


# ── Database helpers ─────────────────────────────────────────────────────


def get_service(db: Session, service_id: int, provider_id: int | None = None) -> Services:
    """Active service by ID, optionally scoped to a provider."""
    service = db.get(Services, service_id)
    if not service or not service.active:
        raise NotFound("Service", service_id)
    if provider_id is not None and service.provider_id != provider_id:
        raise NotFound("Service", service_id)
    return service


def get_busy_intervals(
    db: Session,
    provider_id: int,
    target_date: date,
    buffer_minutes: int,
    exclude_booking_id: int | None = None,
) -> list[Interval]:
    """Live bookings on target_date as [start, end + buffer) minute intervals."""
    query = db.query(Bookings).filter(
        Bookings.provider_id == provider_id,
        Bookings.appointment_date == target_date,
        Bookings.status.in_(ACTIVE_BOOKING_STATUSES),
    )
    if exclude_booking_id is not None:
        query = query.filter(Bookings.id != exclude_booking_id)

    intervals = []
    for booking in query.all():
        start = time_str_to_minutes(booking.appointment_time)
        intervals.append((start, start + booking.duration_minutes + buffer_minutes))
    return intervals
