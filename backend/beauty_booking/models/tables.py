from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    false,
    func,
    text,
    true,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

# Booking statuses that occupy the provider's calendar
ACTIVE_BOOKING_STATUSES = ("PENDING", "CONFIRMED")


class Providers(Base):
    __tablename__ = 'providers'

    id = Column(Integer, primary_key=True)
    business_name = Column(Text, nullable=False)
    timezone = Column(Text)
    advance_booking_days = Column(Integer)
    min_advance_hours = Column(Integer)
    booking_buffer_minutes = Column(Integer)
    same_day_booking_enabled = Column(Boolean)
    instant_booking_enabled = Column(Boolean, nullable=False, server_default=false())
    currency = Column(Text, nullable=False, server_default=text("'USD'"))
    payment_provider = Column(Text, nullable=False, server_default=text("'STRIPE'"))
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    availability = relationship(
        'ProviderAvailability',
        back_populates='provider',
        order_by='ProviderAvailability.day_of_week',
        cascade='all, delete-orphan',
    )
    time_off = relationship('ProviderTimeOff', back_populates='provider', cascade='all, delete-orphan')
    policy = relationship('ProviderPolicies', back_populates='provider', uselist=False, cascade='all, delete-orphan')
    services = relationship('Services', back_populates='provider')
    bookings = relationship('Bookings', back_populates='provider')


class ProviderAvailability(Base):
    __tablename__ = 'provider_availability'
    __table_args__ = (
        UniqueConstraint('provider_id', 'day_of_week'),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)
    is_available = Column(Boolean, nullable=False, server_default=true())

    provider = relationship('Providers', back_populates='availability')


class ProviderTimeOff(Base):
    __tablename__ = 'provider_time_off'

    id = Column(Integer, primary_key=True)
    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    all_day = Column(Boolean, nullable=False, server_default=true())
    start_time = Column(Text)
    end_time = Column(Text)
    reason = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    provider = relationship('Providers', back_populates='time_off')


class ProviderPolicies(Base):
    __tablename__ = 'provider_policies'

    id = Column(Integer, primary_key=True)
    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False, unique=True)
    cancellation_window_hours = Column(Integer, nullable=False)
    cancellation_fee_percentage = Column(Numeric(5, 2), nullable=False)
    late_grace_period_minutes = Column(Integer, nullable=False)
    late_cancellation_after_minutes = Column(Integer, nullable=False)
    no_show_fee_percentage = Column(Numeric(5, 2), nullable=False)
    reschedule_allowed = Column(Boolean, nullable=False)
    reschedule_window_hours = Column(Integer, nullable=False)
    max_reschedules = Column(Integer, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    provider = relationship('Providers', back_populates='policy')


class Services(Base):
    __tablename__ = 'services'

    id = Column(Integer, primary_key=True)
    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    deposit_type = Column(Text, nullable=False, server_default=text("'FIXED'"))  # FIXED / PERCENTAGE
    deposit_amount = Column(Numeric(10, 2), nullable=False, server_default=text('0'))
    active = Column(Boolean, nullable=False, server_default=true())

    provider = relationship('Providers', back_populates='services')
    bookings = relationship('Bookings', back_populates='service')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # Two live bookings can never share a start for the same provider
        Index(
            'uq_bookings_live_start',
            'provider_id', 'appointment_date', 'appointment_time',
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
        Index('ix_bookings_provider_date', 'provider_id', 'appointment_date'),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(Integer, nullable=False, index=True)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Text, nullable=False)  # "HH:MM", provider local
    appointment_end_time = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PENDING'"))

    service_price = Column(Numeric(10, 2), nullable=False)
    deposit_amount = Column(Numeric(10, 2), nullable=False, server_default=text('0'))
    service_fee = Column(Numeric(10, 2), nullable=False, server_default=text('0'))
    total_amount = Column(Numeric(10, 2), nullable=False, server_default=text('0'))
    balance_paid = Column(Numeric(10, 2), nullable=False, server_default=text('0'))
    currency = Column(Text, nullable=False, server_default=text("'USD'"))
    payment_status = Column(Text, nullable=False, server_default=text("'PENDING'"))
    payment_provider = Column(Text)

    reschedule_count = Column(Integer, nullable=False, server_default=text('0'))
    cancelled_by = Column(Text)
    cancellation_reason = Column(Text)
    cancelled_at = Column(DateTime)
    no_show_reported_by = Column(Text)

    version = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    provider = relationship('Providers', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')
    reschedule_requests = relationship(
        'RescheduleRequests',
        back_populates='booking',
        order_by='RescheduleRequests.requested_at',
    )
    payment_instructions = relationship('PaymentInstructions', back_populates='booking')


class RescheduleRequests(Base):
    __tablename__ = 'reschedule_requests'

    id = Column(Integer, primary_key=True)
    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True)
    requested_by = Column(Text, nullable=False)  # client / provider
    new_date = Column(Date, nullable=False)
    new_time = Column(Text, nullable=False)
    reason = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    response_reason = Column(Text)
    requested_at = Column(DateTime, nullable=False)
    responded_at = Column(DateTime)

    booking = relationship('Bookings', back_populates='reschedule_requests')

    __table_args__ = (
        # At most one open request per booking
        Index(
            'uq_reschedule_requests_pending',
            'booking_id',
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )


class PaymentInstructions(Base):
    __tablename__ = 'payment_instructions'

    id = Column(Integer, primary_key=True)
    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True)
    kind = Column(Text, nullable=False)  # REFUND / CHARGE_BALANCE / RELEASE_BALANCE
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(Text, nullable=False)
    recipient = Column(Text, nullable=False)  # client / provider
    payment_provider = Column(Text)
    reason = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'QUEUED'"))
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    booking = relationship('Bookings', back_populates='payment_instructions')
