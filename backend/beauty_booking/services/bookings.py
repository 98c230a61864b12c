# backend/beauty_booking/services/bookings.py
"""
Booking state machine.

    PENDING ──confirm──▶ CONFIRMED ──complete──▶ COMPLETED
       │                    │
       ├──cancel──▶ CANCELLED ◀──cancel──┤
       │                    └──no-show──▶ NO_SHOW

CANCELLED, COMPLETED and NO_SHOW are terminal.

Every transition:
1. samples "now" once from the clock,
2. checks the current status (InvalidTransition otherwise),
3. writes with a compare-and-swap on (id, version, status) so that two
   racing requests resolve to one success and one InvalidTransition,
4. stages payment instructions in the same transaction,
5. commits, then emits events / hands instructions to the payment worker.

Slot claims (create, reschedule) lock the provider row and re-check the
overlap invariant after the write, before commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Bookings, Providers, RescheduleRequests
from .clock import get_clock, to_storage
from .errors import (
    InvalidTransition,
    NotFound,
    OutsideRescheduleWindow,
    RescheduleLimitExceeded,
    SlotUnavailable,
)
from .events import booking_event_payload, emit_event
from .payments import (
    CHARGE_BALANCE,
    REFUND,
    RELEASE_BALANCE,
    add_instruction,
    dispatch_instructions,
)
from .policy import (
    CLIENT,
    PARTIES,
    PROVIDER,
    FeeOutcome,
    calculate_deposit,
    calculate_service_fee,
    cancellation_fee,
    hours_until,
    is_no_show_overdue,
    is_reschedule_allowed,
    no_show_fee,
    round_money,
    to_decimal,
)
from .policy_settings import load_policy
from .schedule import AvailabilitySettings
from .slots.availability import get_service, has_conflict, is_slot_available
from .slots.config import BookingConfig
from .timeutil import local_datetime, minutes_to_time_str, normalize_time_str, time_str_to_minutes

logger = logging.getLogger(__name__)

# Booking statuses
PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
COMPLETED = "COMPLETED"
NO_SHOW = "NO_SHOW"

# Payment statuses
PAYMENT_PENDING = "PENDING"
DEPOSIT_PAID = "DEPOSIT_PAID"
FULLY_PAID = "FULLY_PAID"
REFUNDED = "REFUNDED"

# action → statuses it may start from
TRANSITIONS = {
    "confirm": (PENDING,),
    "cancel": (PENDING, CONFIRMED),
    "reschedule": (PENDING, CONFIRMED),
    "mark_no_show": (CONFIRMED,),
    "complete": (CONFIRMED,),
    "record_payment": (PENDING, CONFIRMED, COMPLETED),
}

STALE_PENDING_REASON = "Auto-declined - Provider did not confirm within {hours} hours"
UNPAID_BALANCE_REASON = "Auto-cancelled - Balance payment not received within {hours} hours of appointment"

# no_show_reported_by for no-shows found by detect_no_shows
SYSTEM_REPORTER = "system"


@dataclass
class TransitionResult:
    booking: Bookings
    fee: Decimal = Decimal("0.00")
    refund: Decimal = Decimal("0.00")
    instructions: list = field(default_factory=list)


# ── Lookups ──────────────────────────────────────────────────────────────


def get_booking(db: Session, booking_id: int) -> Bookings:
    booking = db.get(Bookings, booking_id)
    if not booking:
        raise NotFound("Booking", booking_id)
    return booking


def list_bookings(
    db: Session,
    provider_id: Optional[int] = None,
    client_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[Bookings]:
    query = db.query(Bookings)
    if provider_id is not None:
        query = query.filter(Bookings.provider_id == provider_id)
    if client_id is not None:
        query = query.filter(Bookings.client_id == client_id)
    if status is not None:
        query = query.filter(Bookings.status == status)
    return query.order_by(Bookings.appointment_date.desc(), Bookings.appointment_time.desc()).all()


def _lock_provider(db: Session, provider_id: int) -> Providers:
    """
    Serialize slot claims per provider.

    SELECT ... FOR UPDATE on PostgreSQL; SQLite serializes writers itself.
    """
    provider = (
        db.query(Providers)
        .filter(Providers.id == provider_id)
        .with_for_update()
        .first()
    )
    if not provider:
        raise NotFound("Provider", provider_id)
    return provider


def _timezone(booking: Bookings) -> ZoneInfo:
    return ZoneInfo(AvailabilitySettings.from_provider(booking.provider).timezone)


def appointment_start(booking: Bookings) -> datetime:
    """Aware start instant of the booking in the provider's timezone."""
    local = local_datetime(booking.appointment_date, booking.appointment_time)
    return local.replace(tzinfo=_timezone(booking))


def appointment_end(booking: Bookings) -> datetime:
    return appointment_start(booking) + timedelta(minutes=booking.duration_minutes)


def _deposit_collected(booking: Bookings) -> Decimal:
    if booking.payment_status in (DEPOSIT_PAID, FULLY_PAID):
        return round_money(booking.deposit_amount)
    return round_money(0)


def _guard(booking: Bookings, action: str) -> None:
    if booking.status not in TRANSITIONS[action]:
        raise InvalidTransition(booking.status, action)


def _apply_transition(
    db: Session,
    booking: Bookings,
    action: str,
    values: dict,
    now: datetime,
) -> None:
    """
    Compare-and-swap update inside the current transaction.

    Loses cleanly (rollback + InvalidTransition) if someone else moved the
    booking since it was read.
    """
    expected_version = booking.version
    result = db.execute(
        update(Bookings)
        .where(
            Bookings.id == booking.id,
            Bookings.version == expected_version,
            Bookings.status.in_(TRANSITIONS[action]),
        )
        .values(**values, version=expected_version + 1, updated_at=to_storage(now))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(booking)
        logger.warning(
            f"Booking {booking.id}: {action} lost a concurrent update "
            f"(version {expected_version}, now {booking.status})"
        )
        raise InvalidTransition(
            booking.status,
            action,
            f"Booking {booking.id} was modified concurrently",
        )


def _archive_pending_requests(db: Session, booking_id: int, now: datetime, reason: str) -> int:
    """Deny pending reschedule requests of a booking entering a terminal status."""
    return (
        db.query(RescheduleRequests)
        .filter(
            RescheduleRequests.booking_id == booking_id,
            RescheduleRequests.status == "pending",
        )
        .update(
            {
                "status": "denied",
                "response_reason": reason,
                "responded_at": to_storage(now),
            },
            synchronize_session=False,
        )
    )


# ── Create ───────────────────────────────────────────────────────────────


def create_booking(
    db: Session,
    provider_id: int,
    client_id: int,
    service_id: int,
    appointment_date: date,
    appointment_time: str,
    clock=None,
    config: BookingConfig | None = None,
) -> Bookings:
    """
    Admit a booking request.

    Slots are computed on read, not reserved, so the requested start is
    re-validated here under the provider lock. Instant-booking providers get
    CONFIRMED bookings, everyone else PENDING.
    """
    now = (clock or get_clock()).now()

    provider = _lock_provider(db, provider_id)
    service = get_service(db, service_id, provider_id)
    availability = AvailabilitySettings.from_provider(provider)

    try:
        time_str = normalize_time_str(appointment_time)
    except ValueError:
        db.rollback()
        raise SlotUnavailable(f"Invalid start time {appointment_time!r}")

    if not is_slot_available(db, provider, service.duration_minutes, appointment_date, time_str, now, config):
        db.rollback()
        raise SlotUnavailable(f"{appointment_date} {time_str} is not available")

    price = round_money(service.price)
    deposit = calculate_deposit(price, service.deposit_type, service.deposit_amount)
    service_fee = calculate_service_fee(
        price,
        settings.service_fee_base,
        settings.service_fee_percentage,
        settings.service_fee_cap,
    )

    booking = Bookings(
        provider_id=provider_id,
        client_id=client_id,
        service_id=service_id,
        appointment_date=appointment_date,
        appointment_time=time_str,
        appointment_end_time=minutes_to_time_str(time_str_to_minutes(time_str) + service.duration_minutes),
        duration_minutes=service.duration_minutes,
        status=CONFIRMED if provider.instant_booking_enabled else PENDING,
        service_price=price,
        deposit_amount=deposit,
        service_fee=service_fee,
        total_amount=deposit + service_fee,
        balance_paid=Decimal("0.00"),
        currency=provider.currency,
        payment_status=PAYMENT_PENDING,
        payment_provider=provider.payment_provider,
        reschedule_count=0,
        version=1,
        created_at=to_storage(now),
        updated_at=to_storage(now),
    )
    db.add(booking)

    try:
        db.flush()
        # Storage-level re-check: another writer may have claimed an overlapping slot
        if has_conflict(
            db,
            provider_id,
            appointment_date,
            time_str,
            service.duration_minutes,
            availability.buffer_minutes,
            exclude_booking_id=booking.id,
        ):
            raise SlotUnavailable(f"{appointment_date} {time_str} was just taken")
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SlotUnavailable(f"{appointment_date} {time_str} was just taken")
    except SlotUnavailable:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} created: provider={provider_id} client={client_id} "
        f"{appointment_date} {time_str} status={booking.status}"
    )
    emit_event("booking_created", booking_event_payload(booking))
    return booking


# ── Confirm ──────────────────────────────────────────────────────────────


def confirm_booking(db: Session, booking_id: int, clock=None) -> Bookings:
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    _guard(booking, "confirm")

    _apply_transition(db, booking, "confirm", {"status": CONFIRMED}, now)
    db.commit()

    logger.info(f"Booking {booking_id} confirmed")
    emit_event("booking_confirmed", booking_event_payload(booking))
    return booking


# ── Cancel ───────────────────────────────────────────────────────────────


def preview_cancellation(db: Session, booking_id: int, initiator: str, clock=None) -> FeeOutcome:
    """Fee/refund a cancellation would produce right now, without changing anything."""
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    policy = load_policy(db, booking.provider_id)
    return cancellation_fee(
        policy,
        initiator,
        hours_until(now, appointment_start(booking)),
        booking.deposit_amount,
    )


def cancel_booking(
    db: Session,
    booking_id: int,
    initiator: str,
    reason: Optional[str] = None,
    clock=None,
) -> TransitionResult:
    """
    Cancel a pending or confirmed booking.

    The fee only applies to money actually collected: if the deposit was
    never paid there is nothing to forfeit or refund.
    """
    if initiator not in PARTIES:
        raise ValueError(f"initiator must be one of {PARTIES}, got {initiator!r}")

    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    _guard(booking, "cancel")

    policy = load_policy(db, booking.provider_id)
    outcome = cancellation_fee(
        policy,
        initiator,
        hours_until(now, appointment_start(booking)),
        _deposit_collected(booking),
    )
    refund = outcome.refund + round_money(booking.balance_paid)

    values = {
        "status": CANCELLED,
        "cancelled_by": initiator,
        "cancellation_reason": reason,
        "cancelled_at": to_storage(now),
    }
    if refund > 0:
        values["payment_status"] = REFUNDED

    _apply_transition(db, booking, "cancel", values, now)
    instruction = add_instruction(
        db, booking, REFUND, refund, CLIENT,
        reason=f"Cancelled by {initiator}" + (f": {reason}" if reason else ""),
    )
    archived = _archive_pending_requests(db, booking.id, now, "booking cancelled")
    db.commit()

    logger.info(
        f"Booking {booking_id} cancelled by {initiator}: fee={outcome.fee} refund={refund}"
        + (f", {archived} reschedule request(s) archived" if archived else "")
    )
    dispatch_instructions(db, [instruction])
    emit_event("booking_cancelled", {
        **booking_event_payload(booking),
        "cancelled_by": initiator,
        "fee": str(outcome.fee),
        "refund": str(refund),
    })

    return TransitionResult(
        booking=booking,
        fee=outcome.fee,
        refund=refund,
        instructions=[i for i in (instruction,) if i is not None],
    )


# ── Reschedule ───────────────────────────────────────────────────────────


def check_reschedule_policy(db: Session, booking: Bookings, now: datetime) -> None:
    """
    Policy gate for any reschedule path (direct or approved request).

    The cap is checked first so it applies regardless of timing.
    """
    policy = load_policy(db, booking.provider_id)

    if booking.reschedule_count >= policy.max_reschedules:
        raise RescheduleLimitExceeded(
            f"Booking {booking.id} was already rescheduled "
            f"{booking.reschedule_count} time(s), limit is {policy.max_reschedules}"
        )
    if not policy.reschedule_allowed:
        raise OutsideRescheduleWindow("This provider does not allow rescheduling")

    hours = hours_until(now, appointment_start(booking))
    if not is_reschedule_allowed(policy, hours, booking.reschedule_count):
        raise OutsideRescheduleWindow(
            f"Rescheduling requires at least {policy.reschedule_window_hours} hours notice"
        )


def apply_reschedule(
    db: Session,
    booking: Bookings,
    new_date: date,
    new_time: str,
    now: datetime,
    config: BookingConfig | None = None,
) -> tuple[date, str]:
    """
    Move a booking inside the current transaction (no commit).

    Shared by direct reschedules and approved reschedule requests.

    Returns:
        The previous (date, time).
    """
    _guard(booking, "reschedule")
    check_reschedule_policy(db, booking, now)

    provider = _lock_provider(db, booking.provider_id)
    try:
        time_str = normalize_time_str(new_time)
    except ValueError:
        raise SlotUnavailable(f"Invalid start time {new_time!r}")

    if not is_slot_available(
        db, provider, booking.duration_minutes, new_date, time_str, now, config,
        exclude_booking_id=booking.id,
    ):
        raise SlotUnavailable(f"{new_date} {time_str} is not available")

    previous = (booking.appointment_date, booking.appointment_time)
    buffer_minutes = AvailabilitySettings.from_provider(provider).buffer_minutes

    _apply_transition(db, booking, "reschedule", {
        "appointment_date": new_date,
        "appointment_time": time_str,
        "appointment_end_time": minutes_to_time_str(
            time_str_to_minutes(time_str) + booking.duration_minutes
        ),
        "reschedule_count": booking.reschedule_count + 1,
    }, now)

    if has_conflict(
        db, booking.provider_id, new_date, time_str, booking.duration_minutes,
        buffer_minutes, exclude_booking_id=booking.id,
    ):
        raise SlotUnavailable(f"{new_date} {time_str} was just taken")

    return previous


def reschedule_booking(
    db: Session,
    booking_id: int,
    new_date: date,
    new_time: str,
    clock=None,
    config: BookingConfig | None = None,
) -> Bookings:
    """Direct, client-initiated reschedule."""
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)

    try:
        previous_date, previous_time = apply_reschedule(db, booking, new_date, new_time, now, config)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SlotUnavailable(f"{new_date} {new_time} was just taken")
    except (SlotUnavailable, RescheduleLimitExceeded, OutsideRescheduleWindow):
        db.rollback()
        raise

    logger.info(
        f"Booking {booking_id} rescheduled {previous_date} {previous_time} → "
        f"{booking.appointment_date} {booking.appointment_time} "
        f"(count={booking.reschedule_count})"
    )
    emit_event("booking_rescheduled", {
        **booking_event_payload(booking),
        "previous_date": previous_date.isoformat(),
        "previous_time": previous_time,
    })
    return booking


def can_reschedule(db: Session, booking_id: int, clock=None) -> bool:
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    if booking.status not in TRANSITIONS["reschedule"]:
        return False
    policy = load_policy(db, booking.provider_id)
    return is_reschedule_allowed(
        policy, hours_until(now, appointment_start(booking)), booking.reschedule_count
    )


# ── No-show ──────────────────────────────────────────────────────────────


def mark_no_show(db: Session, booking_id: int, reported_by: str, clock=None) -> TransitionResult:
    """
    Record a no-show once the appointment start has passed.

    reported_by=provider: the client did not show. The deposit is forfeited
    per no_show_fee_percentage and any paid balance is released back.
    reported_by=client: the provider did not show. Everything collected is
    refunded, whatever the policy says.
    """
    if reported_by not in PARTIES:
        raise ValueError(f"reported_by must be one of {PARTIES}, got {reported_by!r}")

    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    _guard(booking, "mark_no_show")

    if now < appointment_start(booking):
        raise InvalidTransition(
            booking.status,
            "mark_no_show",
            f"Booking {booking_id} has not started yet",
        )

    absent_party = CLIENT if reported_by == PROVIDER else PROVIDER
    return _record_no_show(db, booking, absent_party, reported_by, now)


def _record_no_show(
    db: Session,
    booking: Bookings,
    absent_party: str,
    reported_by: str,
    now: datetime,
) -> TransitionResult:
    booking_id = booking.id
    policy = load_policy(db, booking.provider_id)
    balance_paid = round_money(booking.balance_paid)
    outcome = no_show_fee(policy, absent_party, _deposit_collected(booking), balance_paid)

    instructions = []
    if absent_party == CLIENT:
        refunded = outcome.refund + balance_paid
        reason = "Client no-show"
    else:
        refunded = outcome.refund
        reason = "Provider no-show"

    values = {"status": NO_SHOW, "no_show_reported_by": reported_by}
    if refunded > 0:
        values["payment_status"] = REFUNDED

    _apply_transition(db, booking, "mark_no_show", values, now)

    instructions.append(add_instruction(db, booking, REFUND, outcome.refund, CLIENT, reason=reason))
    if absent_party == CLIENT:
        instructions.append(
            add_instruction(db, booking, RELEASE_BALANCE, balance_paid, CLIENT, reason=reason)
        )
    archived = _archive_pending_requests(db, booking.id, now, "booking marked no-show")
    db.commit()

    logger.info(
        f"Booking {booking_id} marked no-show ({absent_party} absent, reported by {reported_by}): "
        f"fee={outcome.fee} refund={refunded}"
        + (f", {archived} reschedule request(s) archived" if archived else "")
    )
    dispatch_instructions(db, instructions)
    emit_event("booking_no_show", {
        **booking_event_payload(booking),
        "absent_party": absent_party,
        "fee": str(outcome.fee),
        "refund": str(refunded),
    })

    return TransitionResult(
        booking=booking,
        fee=outcome.fee,
        refund=refunded,
        instructions=[i for i in instructions if i is not None],
    )


# ── Complete ─────────────────────────────────────────────────────────────


def complete_booking(db: Session, booking_id: int, clock=None) -> TransitionResult:
    """Close a confirmed booking after its end time; charge any outstanding balance."""
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    _guard(booking, "complete")

    if now < appointment_end(booking):
        raise InvalidTransition(
            booking.status,
            "complete",
            f"Booking {booking_id} has not ended yet",
        )

    collected = _deposit_collected(booking) + round_money(booking.balance_paid)
    balance_due = max(round_money(booking.service_price) - collected, round_money(0))

    _apply_transition(db, booking, "complete", {
        "status": COMPLETED,
        "payment_status": FULLY_PAID,
    }, now)
    instruction = add_instruction(
        db, booking, CHARGE_BALANCE, balance_due, PROVIDER, reason="Service completed"
    )
    archived = _archive_pending_requests(db, booking.id, now, "booking completed")
    db.commit()

    logger.info(
        f"Booking {booking_id} completed, balance due {balance_due}"
        + (f", {archived} reschedule request(s) archived" if archived else "")
    )
    dispatch_instructions(db, [instruction])
    emit_event("booking_completed", booking_event_payload(booking))

    return TransitionResult(
        booking=booking,
        instructions=[i for i in (instruction,) if i is not None],
    )


# ── Payment bookkeeping ──────────────────────────────────────────────────


def record_deposit_paid(db: Session, booking_id: int, clock=None) -> Bookings:
    """Payment webhook landing point: the deposit was captured."""
    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)
    _guard(booking, "record_payment")

    if booking.payment_status != PAYMENT_PENDING:
        raise InvalidTransition(
            booking.payment_status,
            "record_deposit_paid",
            f"Deposit for booking {booking_id} is already {booking.payment_status}",
        )

    _apply_transition(db, booking, "record_payment", {"payment_status": DEPOSIT_PAID}, now)
    db.commit()
    logger.info(f"Booking {booking_id}: deposit paid")
    return booking


def record_balance_paid(db: Session, booking_id: int, amount, clock=None) -> Bookings:
    """Payment webhook landing point: (part of) the balance was captured."""
    now = (clock or get_clock()).now()
    amount = round_money(amount)
    if amount <= 0:
        raise ValueError("amount must be positive")

    booking = get_booking(db, booking_id)
    _guard(booking, "record_payment")

    if booking.payment_status != DEPOSIT_PAID:
        raise InvalidTransition(
            booking.payment_status,
            "record_balance_paid",
            f"Balance for booking {booking_id} requires a paid deposit",
        )

    balance_paid = round_money(booking.balance_paid) + amount
    values = {"balance_paid": balance_paid}
    if round_money(booking.deposit_amount) + balance_paid >= round_money(booking.service_price):
        values["payment_status"] = FULLY_PAID

    _apply_transition(db, booking, "record_payment", values, now)
    db.commit()
    logger.info(f"Booking {booking_id}: balance payment {amount}, total balance {balance_paid}")
    return booking


# ── Maintenance ──────────────────────────────────────────────────────────


def decline_stale_pending(db: Session, clock=None, hours: Optional[int] = None) -> list[int]:
    """
    Cancel, as the provider, PENDING bookings with a paid deposit that were
    not confirmed within `hours` of creation. Full refund.

    Triggered by an external scheduler; the engine runs no loop of its own.
    """
    clock = clock or get_clock()
    hours = hours if hours is not None else settings.stale_pending_hours
    cutoff = to_storage(clock.now() - timedelta(hours=hours))

    stale_ids = [
        row.id
        for row in db.query(Bookings.id)
        .filter(
            Bookings.status == PENDING,
            Bookings.payment_status == DEPOSIT_PAID,
            Bookings.created_at <= cutoff,
        )
        .all()
    ]
    logger.info(f"Found {len(stale_ids)} unconfirmed bookings to auto-decline")

    declined = []
    for booking_id in stale_ids:
        try:
            cancel_booking(
                db, booking_id, PROVIDER,
                reason=STALE_PENDING_REASON.format(hours=hours),
                clock=clock,
            )
            declined.append(booking_id)
        except InvalidTransition:
            # Confirmed or cancelled in the meantime
            logger.info(f"Booking {booking_id} changed before auto-decline, skipped")

    return declined


def _sweep_candidates(db: Session, now: datetime, *filters) -> list[Bookings]:
    """
    CONFIRMED bookings dated up to tomorrow (UTC), oldest first.

    Appointment dates are provider-local, so one day of slack covers every
    offset; callers apply the exact cut-off per booking.
    """
    horizon = now.astimezone(timezone.utc).date() + timedelta(days=1)
    return (
        db.query(Bookings)
        .filter(Bookings.status == CONFIRMED, Bookings.appointment_date <= horizon, *filters)
        .order_by(Bookings.appointment_date, Bookings.appointment_time, Bookings.id)
        .all()
    )


def detect_no_shows(db: Session, clock=None) -> list[int]:
    """
    Mark CONFIRMED bookings nobody closed as client no-shows.

    A booking qualifies once its scheduled end has passed by more than the
    provider's late thresholds (late_grace_period_minutes and
    late_cancellation_after_minutes). Money moves exactly as for a
    provider-reported client no-show.
    """
    now = (clock or get_clock()).now()

    overdue = []
    for booking in _sweep_candidates(db, now):
        minutes_overdue = to_decimal((now - appointment_end(booking)).total_seconds()) / 60
        if is_no_show_overdue(load_policy(db, booking.provider_id), minutes_overdue):
            overdue.append(booking)
    logger.info(f"Found {len(overdue)} overdue confirmed bookings to mark as no-show")

    marked = []
    for booking in overdue:
        booking_id = booking.id
        try:
            _record_no_show(db, booking, CLIENT, SYSTEM_REPORTER, now)
            marked.append(booking_id)
        except InvalidTransition:
            logger.info(f"Booking {booking_id} changed before no-show detection, skipped")

    return marked


def cancel_unpaid_balance(db: Session, clock=None, hours: Optional[int] = None) -> list[int]:
    """
    Cancel, as the client, CONFIRMED bookings whose balance is still unpaid
    `hours` after the appointment started.

    The usual client cancellation terms apply to the deposit.
    """
    clock = clock or get_clock()
    hours = hours if hours is not None else settings.unpaid_balance_hours
    now = clock.now()

    overdue_ids = [
        booking.id
        for booking in _sweep_candidates(db, now, Bookings.payment_status == DEPOSIT_PAID)
        if now > appointment_start(booking) + timedelta(hours=hours)
    ]
    logger.info(f"Found {len(overdue_ids)} bookings with unpaid balance to auto-cancel")

    cancelled = []
    for booking_id in overdue_ids:
        try:
            cancel_booking(
                db, booking_id, CLIENT,
                reason=UNPAID_BALANCE_REASON.format(hours=hours),
                clock=clock,
            )
            cancelled.append(booking_id)
        except InvalidTransition:
            logger.info(f"Booking {booking_id} changed before unpaid-balance cancel, skipped")

    return cancelled
