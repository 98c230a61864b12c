from datetime import date, datetime, timezone

import pytest

from beauty_booking.services.bookings import (
    cancel_booking,
    complete_booking,
    confirm_booking,
    create_booking,
    mark_no_show,
    reschedule_booking,
)
from beauty_booking.services.errors import (
    InvalidTransition,
    NotFound,
    RequestAlreadyPending,
    RescheduleLimitExceeded,
    SlotUnavailable,
)
from beauty_booking.services.reschedule_requests import (
    approve_request,
    deny_request,
    list_requests,
    request_reschedule,
)

from conftest import NEXT_MONDAY

TUESDAY = date(2026, 3, 10)


@pytest.fixture
def booking(db, clock, make_provider, make_service):
    provider = make_provider(policy={'max_reschedules': 1})
    service = make_service(provider)
    return create_booking(db, provider.id, 501, service.id, NEXT_MONDAY, '10:00', clock=clock)


def test_approved_request_moves_the_booking(db, clock, booking, redis_double) -> None:
    request = request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', reason='Work trip', clock=clock)

    approved, moved = approve_request(db, request.id, 'provider', clock=clock)

    assert approved.status == 'approved'
    assert approved.responded_at is not None
    assert (moved.appointment_date, moved.appointment_time, moved.reschedule_count) == (TUESDAY, '13:00', 1)
    assert redis_double.event_types() == ['booking_created', 'reschedule_requested', 'booking_rescheduled']


def test_second_pending_request_is_rejected(db, clock, booking) -> None:
    request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)

    with pytest.raises(RequestAlreadyPending):
        request_reschedule(db, booking.id, 'provider', TUESDAY, '15:00', clock=clock)


def test_pending_request_race_is_caught_by_storage(db, clock, booking, monkeypatch: pytest.MonkeyPatch) -> None:
    request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)
    # Second writer read "no pending request" before the first one committed
    monkeypatch.setattr('beauty_booking.services.reschedule_requests.pending_request', lambda *args: None)

    with pytest.raises(RequestAlreadyPending):
        request_reschedule(db, booking.id, 'provider', TUESDAY, '15:00', clock=clock)

    assert [request.status for request in list_requests(db, booking.id)] == ['pending']


def test_requester_cannot_answer_own_request(db, clock, booking) -> None:
    request = request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)

    with pytest.raises(InvalidTransition):
        approve_request(db, request.id, 'client', clock=clock)

    with pytest.raises(InvalidTransition):
        deny_request(db, request.id, 'client', clock=clock)


def test_denied_request_leaves_booking_untouched(db, clock, booking) -> None:
    request = request_reschedule(db, booking.id, 'provider', TUESDAY, '13:00', clock=clock)

    denied = deny_request(db, request.id, 'client', reason='Cannot make it', clock=clock)

    assert denied.status == 'denied'
    assert denied.response_reason == 'Cannot make it'
    db.refresh(booking)
    assert (booking.appointment_date, booking.reschedule_count) == (NEXT_MONDAY, 0)

    with pytest.raises(InvalidTransition):
        approve_request(db, request.id, 'client', clock=clock)


def test_approval_runs_the_same_checks_as_direct_reschedule(db, clock, booking) -> None:
    reschedule_booking(db, booking.id, NEXT_MONDAY, '14:00', clock=clock)
    request = request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)

    with pytest.raises(RescheduleLimitExceeded):
        approve_request(db, request.id, 'provider', clock=clock)

    db.refresh(request)
    assert request.status == 'pending'


def test_approval_rechecks_the_slot(db, clock, booking) -> None:
    other = create_booking(db, booking.provider_id, 502, booking.service_id, TUESDAY, '13:00', clock=clock)
    request = request_reschedule(db, booking.id, 'client', TUESDAY, '13:30', clock=clock)

    with pytest.raises(SlotUnavailable):
        approve_request(db, request.id, 'provider', clock=clock)

    assert other.appointment_time == '13:00'


def test_cancelling_booking_archives_pending_requests(db, clock, booking) -> None:
    request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)

    cancel_booking(db, booking.id, 'client', clock=clock)

    [request] = list_requests(db, booking.id)
    assert request.status == 'denied'
    assert request.response_reason == 'booking cancelled'


def test_no_show_archives_pending_requests(db, clock, booking) -> None:
    confirm_booking(db, booking.id, clock=clock)
    request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)
    clock.set(datetime(2026, 3, 9, 10, 30, tzinfo=timezone.utc))

    mark_no_show(db, booking.id, 'provider', clock=clock)

    [request] = list_requests(db, booking.id)
    assert request.status == 'denied'
    assert request.response_reason == 'booking marked no-show'


def test_completion_archives_pending_requests(db, clock, booking) -> None:
    confirm_booking(db, booking.id, clock=clock)
    request_reschedule(db, booking.id, 'provider', TUESDAY, '13:00', clock=clock)
    clock.set(datetime(2026, 3, 9, 11, 0, tzinfo=timezone.utc))

    complete_booking(db, booking.id, clock=clock)

    [request] = list_requests(db, booking.id)
    assert request.status == 'denied'
    assert request.response_reason == 'booking completed'


def test_terminal_booking_cannot_receive_requests(db, clock, booking) -> None:
    cancel_booking(db, booking.id, 'provider', clock=clock)

    with pytest.raises(InvalidTransition):
        request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)


def test_requests_are_listed_newest_first(db, clock, booking) -> None:
    first = request_reschedule(db, booking.id, 'client', TUESDAY, '13:00', clock=clock)
    deny_request(db, first.id, 'provider', clock=clock)
    clock.set(datetime(2026, 3, 3, 8, 0, tzinfo=timezone.utc))
    second = request_reschedule(db, booking.id, 'client', TUESDAY, '15:00', clock=clock)

    assert [r.id for r in list_requests(db, booking.id)] == [second.id, first.id]


def test_unknown_request_raises_not_found(db, clock) -> None:
    with pytest.raises(NotFound):
        approve_request(db, 404, 'provider', clock=clock)
