# backend/beauty_booking/services/schedule.py
"""
Provider schedule: recurring weekly availability plus booking-wide settings.

Day numbering follows the provider dashboard: 0 = Sunday ... 6 = Saturday.
"""

import logging
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from ..models import ProviderAvailability, Providers
from .errors import InvalidPolicyConfig, NotFound
from .timeutil import time_str_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayRule:
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


@dataclass(frozen=True)
class AvailabilitySettings:
    """Booking-wide settings with named defaults, resolved once on load."""
    timezone: str = "UTC"
    advance_booking_days: int = 30
    minimum_notice_hours: int = 24
    buffer_minutes: int = 0
    same_day_booking: bool = False

    @classmethod
    def from_provider(cls, provider: Providers) -> "AvailabilitySettings":
        defaults = cls()
        return cls(
            timezone=provider.timezone or defaults.timezone,
            advance_booking_days=_or_default(provider.advance_booking_days, defaults.advance_booking_days),
            minimum_notice_hours=_or_default(provider.min_advance_hours, defaults.minimum_notice_hours),
            buffer_minutes=_or_default(provider.booking_buffer_minutes, defaults.buffer_minutes),
            same_day_booking=_or_default(provider.same_day_booking_enabled, defaults.same_day_booking),
        )


def _or_default(value, default):
    return default if value is None else value


def day_of_week(target_date: date) -> int:
    """Python weekday (Mon=0) → schedule numbering (Sun=0)."""
    return (target_date.weekday() + 1) % 7


# ── Validation ───────────────────────────────────────────────────────────


def validate_day_rules(rules: list[DayRule]) -> None:
    if not rules:
        raise InvalidPolicyConfig("Schedule required")

    seen: set[int] = set()
    for rule in rules:
        if not 0 <= rule.day_of_week <= 6:
            raise InvalidPolicyConfig(f"day_of_week must be 0-6, got {rule.day_of_week}")
        if rule.day_of_week in seen:
            raise InvalidPolicyConfig(f"Duplicate rule for day {rule.day_of_week}")
        seen.add(rule.day_of_week)

        try:
            start = time_str_to_minutes(rule.start_time)
            end = time_str_to_minutes(rule.end_time)
        except ValueError as e:
            raise InvalidPolicyConfig(str(e))
        if rule.is_available and start >= end:
            raise InvalidPolicyConfig(
                f"Day {rule.day_of_week}: start_time must be before end_time"
            )

    if not any(rule.is_available for rule in rules):
        raise InvalidPolicyConfig("At least one day must be available")


def validate_settings(settings: AvailabilitySettings) -> None:
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidPolicyConfig(f"Unknown timezone {settings.timezone!r}")

    for name in ("advance_booking_days", "minimum_notice_hours", "buffer_minutes"):
        if getattr(settings, name) < 0:
            raise InvalidPolicyConfig(f"{name} must not be negative")


# ── Read ─────────────────────────────────────────────────────────────────


def get_provider(db: Session, provider_id: int) -> Providers:
    provider = db.get(Providers, provider_id)
    if not provider:
        raise NotFound("Provider", provider_id)
    return provider


def get_schedule(db: Session, provider_id: int) -> tuple[list[DayRule], AvailabilitySettings]:
    provider = get_provider(db, provider_id)
    rules = [
        DayRule(
            day_of_week=row.day_of_week,
            start_time=row.start_time,
            end_time=row.end_time,
            is_available=row.is_available,
        )
        for row in provider.availability
    ]
    return rules, AvailabilitySettings.from_provider(provider)


def get_day_rule(db: Session, provider_id: int, target_date: date) -> DayRule | None:
    row = (
        db.query(ProviderAvailability)
        .filter(
            ProviderAvailability.provider_id == provider_id,
            ProviderAvailability.day_of_week == day_of_week(target_date),
        )
        .first()
    )
    if not row:
        return None
    return DayRule(row.day_of_week, row.start_time, row.end_time, row.is_available)


# ── Write ────────────────────────────────────────────────────────────────


def update_schedule(
    db: Session,
    provider_id: int,
    rules: list[DayRule],
    timezone: str | None = None,
    advance_booking_days: int | None = None,
    minimum_notice_hours: int | None = None,
    buffer_minutes: int | None = None,
    same_day_booking: bool | None = None,
) -> tuple[list[DayRule], AvailabilitySettings]:
    """
    Replace the weekly schedule and patch settings.

    Everything is validated before the first write, so a schedule with no
    available day is never persisted.
    """
    provider = get_provider(db, provider_id)
    current = AvailabilitySettings.from_provider(provider)

    new_settings = AvailabilitySettings(
        timezone=timezone or current.timezone,
        advance_booking_days=_or_default(advance_booking_days, current.advance_booking_days),
        minimum_notice_hours=_or_default(minimum_notice_hours, current.minimum_notice_hours),
        buffer_minutes=_or_default(buffer_minutes, current.buffer_minutes),
        same_day_booking=_or_default(same_day_booking, current.same_day_booking),
    )

    validate_day_rules(rules)
    validate_settings(new_settings)

    provider.timezone = new_settings.timezone
    provider.advance_booking_days = new_settings.advance_booking_days
    provider.min_advance_hours = new_settings.minimum_notice_hours
    provider.booking_buffer_minutes = new_settings.buffer_minutes
    provider.same_day_booking_enabled = new_settings.same_day_booking

    # Replace all rules
    provider.availability.clear()
    db.flush()
    for rule in sorted(rules, key=lambda r: r.day_of_week):
        provider.availability.append(ProviderAvailability(
            day_of_week=rule.day_of_week,
            start_time=rule.start_time,
            end_time=rule.end_time,
            is_available=rule.is_available,
        ))

    db.commit()
    logger.info(
        f"Schedule updated for provider {provider_id}: "
        f"{sum(1 for r in rules if r.is_available)} available days"
    )
    return get_schedule(db, provider_id)
