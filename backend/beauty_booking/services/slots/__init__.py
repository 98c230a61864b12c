# backend/beauty_booking/services/slots/__init__.py
"""
Slots calculation module.

Level 1: Open windows (weekly schedule minus time off)
Level 2: Service availability (booking window, notice, existing bookings)
"""

from .config import BookingConfig, get_booking_config
from .calculator import calculate_open_windows, generate_candidates, is_bookable_date
from .availability import (
    TimeSlot,
    calculate_available_days,
    get_available_slots,
    has_conflict,
    is_slot_available,
    iter_available_slots,
)

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "calculate_open_windows",
    "generate_candidates",
    "is_bookable_date",
    "TimeSlot",
    "calculate_available_days",
    "get_available_slots",
    "has_conflict",
    "is_slot_available",
    "iter_available_slots",
]
