import json
import os
from dataclasses import asdict
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('REDIS_URL', 'redis://localhost:6379/15')

from beauty_booking.database import build_engine  # noqa: E402
from beauty_booking.models import (  # noqa: E402
    Base,
    ProviderAvailability,
    ProviderPolicies,
    Providers,
    Services,
)
from beauty_booking.services.clock import FixedClock  # noqa: E402
from beauty_booking.services.events import P2P_QUEUE, PAYMENTS_QUEUE  # noqa: E402
from beauty_booking.services.policy import PolicyConfig  # noqa: E402

# Monday 2026-03-02 08:00 UTC; appointments default to the following Monday
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
NEXT_MONDAY = date(2026, 3, 9)
WEEKDAYS = (1, 2, 3, 4, 5)


class RecordingRedis:
    """Stands in for the Redis client; keeps what was pushed."""

    def __init__(self) -> None:
        self.pushed: list[tuple[str, dict]] = []
        self.down = False

    def rpush(self, queue: str, value: str) -> int:
        if self.down:
            raise RedisConnectionError('Connection refused')
        self.pushed.append((queue, json.loads(value)))
        return len(self.pushed)

    def ping(self) -> bool:
        if self.down:
            raise RedisConnectionError('Connection refused')
        return True

    def events(self) -> list[dict]:
        return [event for queue, event in self.pushed if queue == P2P_QUEUE]

    def event_types(self) -> list[str]:
        return [event['type'] for event in self.events()]

    def payment_instructions(self) -> list[dict]:
        return [event for queue, event in self.pushed if queue == PAYMENTS_QUEUE]


@pytest.fixture(autouse=True)
def redis_double(monkeypatch: pytest.MonkeyPatch) -> RecordingRedis:
    double = RecordingRedis()
    monkeypatch.setattr('beauty_booking.services.events.redis_client', double)
    return double


@pytest.fixture
def engine():
    engine = build_engine('sqlite://', poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def make_provider(db):
    def _make(
        days=WEEKDAYS,
        start_time: str = '09:00',
        end_time: str = '17:00',
        policy: dict | None = None,
        **fields,
    ) -> Providers:
        values = {
            'business_name': 'Glow Studio',
            'timezone': 'UTC',
            'advance_booking_days': 30,
            'min_advance_hours': 24,
            'booking_buffer_minutes': 0,
            'same_day_booking_enabled': False,
            'instant_booking_enabled': False,
            **fields,
        }
        provider = Providers(**values)
        for day in range(7):
            provider.availability.append(ProviderAvailability(
                day_of_week=day,
                start_time=start_time,
                end_time=end_time,
                is_available=day in days,
            ))
        db.add(provider)
        db.flush()

        if policy is not None:
            db.add(ProviderPolicies(provider_id=provider.id, **asdict(PolicyConfig(**policy))))

        db.commit()
        db.refresh(provider)
        return provider

    return _make


@pytest.fixture
def make_service(db):
    def _make(
        provider: Providers,
        duration_minutes: int = 60,
        price: str = '100.00',
        deposit_type: str = 'FIXED',
        deposit_amount: str = '40.00',
        active: bool = True,
    ) -> Services:
        service = Services(
            provider_id=provider.id,
            title='Silk press',
            duration_minutes=duration_minutes,
            price=Decimal(price),
            deposit_type=deposit_type,
            deposit_amount=Decimal(deposit_amount),
            active=active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make
