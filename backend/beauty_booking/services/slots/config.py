"""
Booking configuration for slots calculation.
"""

from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slot engine.

    Attributes:
        slot_step_minutes: Grid step in minutes between candidate starts (15/30/60)
        calendar_max_days: Upper bound on days returned by the calendar view
    """
    slot_step_minutes: int = 30  # 15 / 30 / 60
    calendar_max_days: int = 90

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.calendar_max_days < 1:
            raise ValueError(f"calendar_max_days must be positive, got {self.calendar_max_days}")


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton)."""
    return BookingConfig()

