# backend/beauty_booking/services/time_off.py
"""
Time-off registry (blocked dates).

Entries override the weekly schedule: all-day entries close every covered
day, partial entries block the same sub-range on each covered day. Past
entries are kept for history; listings only show current or future ones.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from ..models import ProviderTimeOff
from .errors import InvalidPolicyConfig, NotFound
from .schedule import get_provider
from .timeutil import normalize_time_str, time_str_to_minutes

logger = logging.getLogger(__name__)


def create_time_off(
    db: Session,
    provider_id: int,
    start_date: date,
    end_date: date,
    all_day: bool = True,
    start_time: str | None = None,
    end_time: str | None = None,
    reason: str | None = None,
) -> ProviderTimeOff:
    get_provider(db, provider_id)

    if start_date > end_date:
        raise InvalidPolicyConfig("start_date must not be after end_date")

    if all_day:
        start_time = end_time = None
    else:
        if not start_time or not end_time:
            raise InvalidPolicyConfig("start_time and end_time are required for partial time off")
        try:
            start_time = normalize_time_str(start_time)
            end_time = normalize_time_str(end_time)
        except ValueError as e:
            raise InvalidPolicyConfig(str(e))
        if time_str_to_minutes(start_time) >= time_str_to_minutes(end_time):
            raise InvalidPolicyConfig("start_time must be before end_time")

    obj = ProviderTimeOff(
        provider_id=provider_id,
        start_date=start_date,
        end_date=end_date,
        all_day=all_day,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)

    logger.info(
        f"Time off {obj.id} created for provider {provider_id}: "
        f"{start_date}..{end_date} {'all day' if all_day else f'{start_time}-{end_time}'}"
    )
    return obj


def delete_time_off(db: Session, provider_id: int, time_off_id: int) -> None:
    obj = db.get(ProviderTimeOff, time_off_id)
    if not obj or obj.provider_id != provider_id:
        raise NotFound("Time off", time_off_id)
    db.delete(obj)
    db.commit()
    logger.info(f"Time off {time_off_id} deleted for provider {provider_id}")


def list_time_off(db: Session, provider_id: int, today: date) -> list[ProviderTimeOff]:
    """Current or future entries, earliest first."""
    get_provider(db, provider_id)
    return (
        db.query(ProviderTimeOff)
        .filter(
            ProviderTimeOff.provider_id == provider_id,
            ProviderTimeOff.end_date >= today,
        )
        .order_by(ProviderTimeOff.start_date)
        .all()
    )


def get_time_off_for_date(db: Session, provider_id: int, target_date: date) -> list[ProviderTimeOff]:
    """Entries covering target_date."""
    return (
        db.query(ProviderTimeOff)
        .filter(
            ProviderTimeOff.provider_id == provider_id,
            ProviderTimeOff.start_date <= target_date,
            ProviderTimeOff.end_date >= target_date,
        )
        .all()
    )
