# backend/beauty_booking/services/reschedule_requests.py
"""
Reschedule requests: one party proposes a new time, the other approves or
denies it.

Approval goes through the same validation as a direct reschedule
(apply_reschedule), so the cap, the window and the slot check cannot be
bypassed by asking nicely.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import RescheduleRequests
from .bookings import TRANSITIONS, apply_reschedule, get_booking
from .clock import get_clock, to_storage
from .errors import (
    BookingEngineError,
    InvalidTransition,
    NotFound,
    RequestAlreadyPending,
    SlotUnavailable,
)
from .events import booking_event_payload, emit_event
from .policy import PARTIES
from .slots.config import BookingConfig
from .timeutil import normalize_time_str

logger = logging.getLogger(__name__)

REQUEST_PENDING = "pending"
REQUEST_APPROVED = "approved"
REQUEST_DENIED = "denied"


def get_request(db: Session, request_id: int) -> RescheduleRequests:
    request = db.get(RescheduleRequests, request_id)
    if not request:
        raise NotFound("Reschedule request", request_id)
    return request


def list_requests(db: Session, booking_id: int) -> list[RescheduleRequests]:
    get_booking(db, booking_id)
    return (
        db.query(RescheduleRequests)
        .filter(RescheduleRequests.booking_id == booking_id)
        .order_by(RescheduleRequests.requested_at.desc(), RescheduleRequests.id.desc())
        .all()
    )


def pending_request(db: Session, booking_id: int) -> Optional[RescheduleRequests]:
    return (
        db.query(RescheduleRequests)
        .filter(
            RescheduleRequests.booking_id == booking_id,
            RescheduleRequests.status == REQUEST_PENDING,
        )
        .first()
    )


def request_reschedule(
    db: Session,
    booking_id: int,
    requested_by: str,
    new_date: date,
    new_time: str,
    reason: Optional[str] = None,
    clock=None,
) -> RescheduleRequests:
    if requested_by not in PARTIES:
        raise ValueError(f"requested_by must be one of {PARTIES}, got {requested_by!r}")

    now = (clock or get_clock()).now()
    booking = get_booking(db, booking_id)

    if booking.status not in TRANSITIONS["reschedule"]:
        raise InvalidTransition(booking.status, "request_reschedule")

    pending = pending_request(db, booking_id)
    if pending:
        raise RequestAlreadyPending(
            f"Booking {booking_id} already has a pending reschedule request ({pending.id})"
        )

    try:
        time_str = normalize_time_str(new_time)
    except ValueError:
        raise SlotUnavailable(f"Invalid start time {new_time!r}")

    request = RescheduleRequests(
        booking_id=booking_id,
        requested_by=requested_by,
        new_date=new_date,
        new_time=time_str,
        reason=reason,
        status=REQUEST_PENDING,
        requested_at=to_storage(now),
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # uq_reschedule_requests_pending: another request won the race
        db.rollback()
        raise RequestAlreadyPending(
            f"Booking {booking_id} already has a pending reschedule request"
        )
    db.refresh(request)

    logger.info(
        f"Reschedule request {request.id} for booking {booking_id} by {requested_by}: "
        f"{new_date} {time_str}"
    )
    emit_event("reschedule_requested", {
        **booking_event_payload(booking),
        "request_id": request.id,
        "requested_by": requested_by,
        "new_date": new_date.isoformat(),
        "new_time": time_str,
    })
    return request


def _check_responder(request: RescheduleRequests, responder: str, action: str) -> None:
    if request.status != REQUEST_PENDING:
        raise InvalidTransition(request.status, action, f"Reschedule request {request.id} is {request.status}")
    if responder not in PARTIES or responder == request.requested_by:
        raise InvalidTransition(
            request.status,
            action,
            f"Reschedule request {request.id} must be answered by the other party",
        )


def approve_request(
    db: Session,
    request_id: int,
    responder: str,
    clock=None,
    config: BookingConfig | None = None,
):
    """Approve and move the booking; the request stays pending if validation fails."""
    now = (clock or get_clock()).now()
    request = get_request(db, request_id)
    _check_responder(request, responder, "approve")

    booking = get_booking(db, request.booking_id)
    try:
        previous_date, previous_time = apply_reschedule(
            db, booking, request.new_date, request.new_time, now, config
        )
        request.status = REQUEST_APPROVED
        request.responded_at = to_storage(now)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SlotUnavailable(f"{request.new_date} {request.new_time} was just taken")
    except BookingEngineError:
        db.rollback()
        raise

    logger.info(
        f"Reschedule request {request_id} approved by {responder}: booking {booking.id} "
        f"{previous_date} {previous_time} → {booking.appointment_date} {booking.appointment_time}"
    )
    emit_event("booking_rescheduled", {
        **booking_event_payload(booking),
        "previous_date": previous_date.isoformat(),
        "previous_time": previous_time,
        "request_id": request_id,
    })
    return request, booking


def deny_request(
    db: Session,
    request_id: int,
    responder: str,
    reason: Optional[str] = None,
    clock=None,
) -> RescheduleRequests:
    now = (clock or get_clock()).now()
    request = get_request(db, request_id)
    _check_responder(request, responder, "deny")

    request.status = REQUEST_DENIED
    request.response_reason = reason
    request.responded_at = to_storage(now)
    db.commit()

    logger.info(f"Reschedule request {request_id} denied by {responder}")
    emit_event("reschedule_denied", {
        "request_id": request_id,
        "booking_id": request.booking_id,
        "responder": responder,
        "reason": reason,
    })
    return request
