from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from beauty_booking.models import Bookings
from beauty_booking.services.clock import FixedClock
from beauty_booking.services.errors import NotFound
from beauty_booking.services.slots import (
    BookingConfig,
    calculate_available_days,
    generate_candidates,
    get_available_slots,
    iter_available_slots,
)
from beauty_booking.services.time_off import create_time_off

from conftest import NEXT_MONDAY

QUARTER_HOUR = BookingConfig(slot_step_minutes=15)


def _book(db, provider, service, start: str, end: str, status: str = 'CONFIRMED', day: date = NEXT_MONDAY) -> Bookings:
    start_minutes = int(start[:2]) * 60 + int(start[3:])
    end_minutes = int(end[:2]) * 60 + int(end[3:])
    booking = Bookings(
        provider_id=provider.id,
        client_id=77,
        service_id=service.id,
        appointment_date=day,
        appointment_time=start,
        appointment_end_time=end,
        duration_minutes=end_minutes - start_minutes,
        status=status,
        service_price=Decimal('100.00'),
        deposit_amount=Decimal('40.00'),
        created_at=datetime(2026, 3, 1),
        updated_at=datetime(2026, 3, 1),
    )
    db.add(booking)
    db.commit()
    return booking


def _starts(slots) -> list[str]:
    return [slot.start_time for slot in slots]


def test_buffer_pushes_next_slot_past_existing_booking(db, clock, make_provider, make_service) -> None:
    provider = make_provider(booking_buffer_minutes=15)
    long_service = make_service(provider, duration_minutes=60)
    short_service = make_service(provider, duration_minutes=30)
    _book(db, provider, long_service, '10:00', '11:00')

    starts = _starts(get_available_slots(db, provider.id, short_service.id, NEXT_MONDAY, clock, QUARTER_HOUR))

    after_booking = [start for start in starts if start >= '10:00']
    assert after_booking[0] == '11:15'
    assert '11:00' not in starts
    assert '09:30' not in starts
    assert starts[:2] == ['09:00', '09:15']


def test_last_slot_may_end_exactly_at_close(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider, duration_minutes=60)

    slots = get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock)

    assert slots[0].start_time == '09:00'
    assert slots[-1].start_time == '16:00'
    assert slots[-1].end_time == '17:00'
    assert len(slots) == 15


def test_cancelled_bookings_do_not_block_slots(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider)
    _book(db, provider, service, '10:00', '11:00', status='CANCELLED')

    assert '10:00' in _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))


def test_pending_bookings_block_slots(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider)
    _book(db, provider, service, '10:00', '11:00', status='PENDING')

    starts = _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))

    assert '09:30' not in starts
    assert '10:30' not in starts
    assert '09:00' in starts
    assert '11:00' in starts


def test_minimum_notice_drops_early_slots(db, make_provider, make_service) -> None:
    provider = make_provider(min_advance_hours=24)
    service = make_service(provider)
    clock = FixedClock(datetime(2026, 3, 8, 12, 0, tzinfo=timezone.utc))

    starts = _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))

    assert starts[0] == '12:00'


def test_same_day_booking_disabled_returns_nothing_today(db, make_provider, make_service) -> None:
    provider = make_provider(min_advance_hours=0, same_day_booking_enabled=False)
    service = make_service(provider)
    clock = FixedClock(datetime(2026, 3, 9, 6, 0, tzinfo=timezone.utc))

    assert get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock) == []


def test_same_day_booking_enabled_respects_notice(db, make_provider, make_service) -> None:
    provider = make_provider(min_advance_hours=2, same_day_booking_enabled=True)
    service = make_service(provider)
    clock = FixedClock(datetime(2026, 3, 9, 10, 10, tzinfo=timezone.utc))

    starts = _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))

    assert starts[0] == '12:30'


@pytest.mark.parametrize(
    ('target', 'expected_open'),
    [
        (date(2026, 3, 1), False),
        (date(2026, 4, 1), True),
        (date(2026, 4, 3), False),
    ],
)
def test_booking_window_limits_dates(db, clock, make_provider, make_service, target: date, expected_open: bool) -> None:
    provider = make_provider(days=range(7), advance_booking_days=30)
    service = make_service(provider)

    slots = get_available_slots(db, provider.id, service.id, target, clock)

    assert bool(slots) is expected_open


def test_closed_day_has_no_slots(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider)

    assert get_available_slots(db, provider.id, service.id, date(2026, 3, 8), clock) == []


def test_all_day_time_off_closes_the_day(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider)
    create_time_off(db, provider.id, date(2026, 3, 7), NEXT_MONDAY)

    assert get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock) == []


def test_partial_time_off_splits_the_window(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider, duration_minutes=60)
    create_time_off(db, provider.id, NEXT_MONDAY, NEXT_MONDAY, all_day=False, start_time='12:00', end_time='13:30')

    starts = _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))

    assert '11:00' in starts
    assert '11:30' not in starts
    assert '12:30' not in starts
    assert '13:30' in starts


def test_slots_are_in_provider_local_time(db, make_provider, make_service) -> None:
    provider = make_provider(timezone='America/New_York', min_advance_hours=1, same_day_booking_enabled=True)
    service = make_service(provider)
    # 13:00 UTC is 09:00 in New York (EDT starts 2026-03-08)
    clock = FixedClock(datetime(2026, 3, 9, 13, 0, tzinfo=timezone.utc))

    starts = _starts(get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock))

    assert starts[0] == '10:00'


def test_minimum_notice_is_elapsed_time_across_dst_change(db, make_provider, make_service) -> None:
    provider = make_provider(days=range(7), timezone='America/New_York', min_advance_hours=24)
    service = make_service(provider)
    # Saturday 14:00 EST; clocks jump forward overnight, so Sunday 14:00 EDT is 23 h away
    clock = FixedClock(datetime(2026, 3, 7, 19, 0, tzinfo=timezone.utc))

    starts = _starts(get_available_slots(db, provider.id, service.id, date(2026, 3, 8), clock))

    assert '14:00' not in starts
    assert starts[0] == '15:00'


def test_unknown_service_raises_not_found(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    other = make_provider(business_name='Other')
    foreign_service = make_service(other)

    with pytest.raises(NotFound):
        get_available_slots(db, provider.id, 999, NEXT_MONDAY, clock)

    with pytest.raises(NotFound):
        iter_available_slots(db, provider.id, foreign_service.id, NEXT_MONDAY, clock)


def test_inactive_service_raises_not_found(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider, active=False)

    with pytest.raises(NotFound):
        get_available_slots(db, provider.id, service.id, NEXT_MONDAY, clock)


def test_calendar_counts_open_slots_per_day(db, clock, make_provider, make_service) -> None:
    provider = make_provider()
    service = make_service(provider, duration_minutes=60)

    days = dict(calculate_available_days(db, provider.id, service.id, date(2026, 3, 7), NEXT_MONDAY, clock))

    assert days == {date(2026, 3, 7): 0, date(2026, 3, 8): 0, NEXT_MONDAY: 15}


def test_generate_candidates_walks_each_window_from_its_start() -> None:
    assert generate_candidates([(540, 630), (645, 720)], 30, 30) == [540, 570, 600, 645, 675]


def test_generate_candidates_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError):
        generate_candidates([(540, 600)], 0, 30)


def test_slot_step_is_validated() -> None:
    with pytest.raises(ValueError):
        BookingConfig(slot_step_minutes=20)