from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from beauty_booking.database import get_db
from beauty_booking.main import app
from beauty_booking.services.clock import get_clock

from conftest import NEXT_MONDAY


@pytest.fixture
def client(session_factory, clock, redis_double, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('beauty_booking.main.redis_client', redis_double)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def provider(make_provider):
    return make_provider()


@pytest.fixture
def service(provider, make_service):
    return make_service(provider)


def _create_booking(client: TestClient, provider, service, start: str = '10:00', client_id: int = 501) -> dict:
    response = client.post('/bookings/', json={
        'provider_id': provider.id,
        'client_id': client_id,
        'service_id': service.id,
        'appointment_date': NEXT_MONDAY.isoformat(),
        'appointment_time': start,
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_health_reports_redis(client: TestClient, redis_double) -> None:
    assert client.get('/health').json() == {'status': 'ok', 'redis': True}

    redis_double.down = True
    assert client.get('/health').json() == {'status': 'ok', 'redis': False}


def test_availability_round_trip_and_validation(client: TestClient, provider) -> None:
    response = client.put(f'/providers/{provider.id}/availability', json={
        'schedule': [
            {'day_of_week': 1, 'start_time': '10:00', 'end_time': '18:00'},
            {'day_of_week': 0, 'start_time': '10:00', 'end_time': '14:00', 'is_available': False},
        ],
        'buffer_minutes': 10,
    })
    assert response.status_code == 200, response.text

    body = client.get(f'/providers/{provider.id}/availability').json()
    assert [rule['day_of_week'] for rule in body['schedule']] == [0, 1]
    assert body['buffer_minutes'] == 10
    assert body['timezone'] == 'UTC'

    response = client.put(f'/providers/{provider.id}/availability', json={
        'schedule': [{'day_of_week': 1, 'start_time': '10:00', 'end_time': '18:00', 'is_available': False}],
    })
    assert response.status_code == 422
    assert response.json()['error'] == 'invalid_policy_config'


def test_unknown_provider_is_404(client: TestClient) -> None:
    response = client.get('/providers/999/availability')

    assert response.status_code == 404
    assert response.json() == {'detail': 'Provider 999 not found', 'error': 'not_found'}


def test_time_off_create_list_delete(client: TestClient, provider) -> None:
    response = client.post(f'/providers/{provider.id}/time-off', json={
        'start_date': '2026-03-10',
        'end_date': '2026-03-10',
        'all_day': False,
        'start_time': '12:00',
        'end_time': '13:00',
        'reason': 'Dentist',
    })
    assert response.status_code == 201, response.text
    time_off_id = response.json()['id']

    assert [entry['reason'] for entry in client.get(f'/providers/{provider.id}/time-off').json()] == ['Dentist']

    assert client.delete(f'/providers/{provider.id}/time-off/{time_off_id}').status_code == 204
    assert client.get(f'/providers/{provider.id}/time-off').json() == []


def test_policies_default_then_partial_update(client: TestClient, provider) -> None:
    body = client.get(f'/providers/{provider.id}/policies').json()
    assert body['cancellation_window_hours'] == 24
    assert body['max_reschedules'] == 2

    response = client.put(f'/providers/{provider.id}/policies', json={'max_reschedules': 5})
    assert response.status_code == 200
    assert response.json()['max_reschedules'] == 5
    assert response.json()['cancellation_window_hours'] == 24

    response = client.put(f'/providers/{provider.id}/policies', json={'no_show_fee_percentage': 150})
    assert response.status_code == 422

    response = client.put(f'/providers/{provider.id}/policies', json={'late_grace_period_minutes': 61})
    assert response.status_code == 422


def test_slots_day_and_calendar(client: TestClient, provider, service) -> None:
    response = client.get('/slots/day', params={
        'provider_id': provider.id,
        'service_id': service.id,
        'date': NEXT_MONDAY.isoformat(),
    })
    assert response.status_code == 200
    slots = response.json()['slots']
    assert slots[0] == {'start_time': '09:00', 'end_time': '10:00'}

    calendar = client.get('/slots/calendar', params={'provider_id': provider.id, 'service_id': service.id}).json()
    assert calendar['start_date'] == '2026-03-02'
    assert calendar['end_date'] == '2026-04-01'
    counts = {day['date']: day['open_slots_count'] for day in calendar['days']}
    assert counts['2026-03-09'] == len(slots)
    assert counts['2026-03-08'] == 0


def test_slots_for_unknown_service_is_404(client: TestClient, provider) -> None:
    response = client.get('/slots/day', params={'provider_id': provider.id, 'service_id': 999, 'date': '2026-03-09'})

    assert response.status_code == 404
    assert response.json()['error'] == 'not_found'


def test_booking_lifecycle_over_http(client: TestClient, provider, service) -> None:
    booking = _create_booking(client, provider, service)
    assert booking['status'] == 'PENDING'
    assert booking['service_fee'] == '4.85'

    response = client.post('/bookings/', json={
        'provider_id': provider.id,
        'client_id': 502,
        'service_id': service.id,
        'appointment_date': NEXT_MONDAY.isoformat(),
        'appointment_time': '10:30',
    })
    assert response.status_code == 409
    assert response.json()['error'] == 'slot_unavailable'

    assert client.post(f"/bookings/{booking['id']}/confirm").json()['status'] == 'CONFIRMED'
    response = client.post(f"/bookings/{booking['id']}/confirm")
    assert response.status_code == 409
    assert response.json()['error'] == 'invalid_transition'

    assert client.post(f"/bookings/{booking['id']}/deposit-paid").json()['payment_status'] == 'DEPOSIT_PAID'

    preview = client.get(f"/bookings/{booking['id']}/cancellation-preview", params={'initiator': 'client'}).json()
    assert preview['refund'] == '40.00'
    assert preview['can_reschedule'] is True

    response = client.post(f"/bookings/{booking['id']}/cancel", json={'initiator': 'client', 'reason': 'Sick'})
    assert response.status_code == 200
    body = response.json()
    assert body['booking']['status'] == 'CANCELLED'
    assert body['refund'] == '40.00'
    assert [i['kind'] for i in body['instructions']] == ['REFUND']

    instructions = client.get(f"/bookings/{booking['id']}/payment-instructions").json()
    assert [(i['amount'], i['status']) for i in instructions] == [('40.00', 'SENT')]


def test_cancel_rejects_unknown_initiator(client: TestClient, provider, service) -> None:
    booking = _create_booking(client, provider, service)

    response = client.post(f"/bookings/{booking['id']}/cancel", json={'initiator': 'salon'})

    assert response.status_code == 422


def test_reschedule_over_http(client: TestClient, provider, service) -> None:
    booking = _create_booking(client, provider, service)

    response = client.post(f"/bookings/{booking['id']}/reschedule", json={'new_date': '2026-03-10', 'new_time': '11:00'})

    assert response.status_code == 200
    assert response.json()['appointment_date'] == '2026-03-10'
    assert response.json()['reschedule_count'] == 1


def test_reschedule_request_flow_over_http(client: TestClient, provider, service) -> None:
    booking = _create_booking(client, provider, service)

    response = client.post(f"/bookings/{booking['id']}/reschedule-requests", json={
        'requested_by': 'provider',
        'new_date': '2026-03-10',
        'new_time': '15:00',
    })
    assert response.status_code == 201, response.text
    request_id = response.json()['id']

    response = client.post(f"/bookings/{booking['id']}/reschedule-requests", json={
        'requested_by': 'client',
        'new_date': '2026-03-11',
        'new_time': '15:00',
    })
    assert response.status_code == 409
    assert response.json()['error'] == 'request_already_pending'

    response = client.post(f'/reschedule-requests/{request_id}/approve', json={'responder': 'client'})
    assert response.status_code == 200, response.text
    assert response.json()['request']['status'] == 'approved'
    assert response.json()['booking']['appointment_time'] == '15:00'

    listed = client.get(f"/bookings/{booking['id']}/reschedule-requests").json()
    assert [r['status'] for r in listed] == ['approved']


def test_decline_stale_endpoint(client: TestClient, clock, provider, service) -> None:
    booking = _create_booking(client, provider, service)
    client.post(f"/bookings/{booking['id']}/deposit-paid")
    clock.advance(hours=49)

    response = client.post('/internal/bookings/decline-stale')

    assert response.json() == {'declined': [booking['id']], 'count': 1}
    assert client.get(f"/bookings/{booking['id']}").json()['status'] == 'CANCELLED'


def test_detect_no_shows_endpoint(client: TestClient, clock, provider, service) -> None:
    booking = _create_booking(client, provider, service)
    client.post(f"/bookings/{booking['id']}/confirm")
    clock.set(datetime(2026, 3, 9, 11, 16, tzinfo=timezone.utc))

    response = client.post('/internal/bookings/detect-no-shows')

    assert response.json() == {'marked': [booking['id']], 'count': 1}
    body = client.get(f"/bookings/{booking['id']}").json()
    assert (body['status'], body['no_show_reported_by']) == ('NO_SHOW', 'system')


def test_cancel_unpaid_balance_endpoint(client: TestClient, clock, provider, service) -> None:
    booking = _create_booking(client, provider, service)
    client.post(f"/bookings/{booking['id']}/deposit-paid")
    client.post(f"/bookings/{booking['id']}/confirm")
    clock.set(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))

    response = client.post('/internal/bookings/cancel-unpaid-balance')

    assert response.json() == {'cancelled': [booking['id']], 'count': 1}
    assert client.get(f"/bookings/{booking['id']}").json()['cancelled_by'] == 'client'


def test_patch_and_delete_bookings_are_not_allowed(client: TestClient, provider, service) -> None:
    booking = _create_booking(client, provider, service)

    assert client.patch(f"/bookings/{booking['id']}").status_code == 405
    assert client.delete(f"/bookings/{booking['id']}").status_code == 405
