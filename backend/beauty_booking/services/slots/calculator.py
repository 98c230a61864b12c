"""
Level 1: open windows for a provider on a date.

Produces the provider-local working intervals left after applying:
✓ weekly schedule (day rule for the date's weekday)
✓ time off covering the date (all-day closes the day, partial splits it)

Does NOT contain:
✗ Booking window / minimum notice (checked at Level 2)
✗ Existing bookings (checked at Level 2)
"""

from datetime import date, timedelta
from sqlalchemy.orm import Session

from ..schedule import AvailabilitySettings, get_day_rule
from ..time_off import get_time_off_for_date
from ..timeutil import Interval, subtract_interval, time_str_to_minutes


def is_bookable_date(
    target_date: date,
    today: date,
    settings: AvailabilitySettings,
) -> bool:
    """Date lies in [today, today + advance_booking_days] and same-day rules allow it."""
    if target_date < today:
        return False
    if target_date > today + timedelta(days=settings.advance_booking_days):
        return False
    if target_date == today and not settings.same_day_booking:
        return False
    return True


def calculate_open_windows(
    db: Session,
    provider_id: int,
    target_date: date,
) -> list[Interval]:
    """
    Working intervals for target_date in minutes since local midnight.

    Returns:
        Sorted, disjoint intervals. Empty list = closed.
    """
    # Step 1: Weekly rule
    rule = get_day_rule(db, provider_id, target_date)
    if rule is None or not rule.is_available:
        return []

    windows: list[Interval] = [
        (time_str_to_minutes(rule.start_time), time_str_to_minutes(rule.end_time))
    ]

    # Step 2: Time off
    for block in get_time_off_for_date(db, provider_id, target_date):
        if block.all_day:
            return []
        windows = subtract_interval(
            windows,
            (time_str_to_minutes(block.start_time), time_str_to_minutes(block.end_time)),
        )
        if not windows:
            return []

    return sorted(windows)


def generate_candidates(
    windows: list[Interval],
    duration_minutes: int,
    step_minutes: int,
) -> list[int]:
    """
    Candidate start minutes for a service of duration_minutes.

    Each window is walked from its own start; a final candidate that ends
    exactly at the window end is kept.
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    starts: list[int] = []
    for window_start, window_end in windows:
        t = window_start
        while t + duration_minutes <= window_end:
            starts.append(t)
            t += step_minutes
    return starts
