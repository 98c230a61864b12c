"""
backend/beauty_booking/services/events.py

Event emitter: pushes events to Redis queues for out-of-process consumers.

Queues:
- events:p2p: booking lifecycle notifications (client/provider, calendar sync)
- events:payments: payment instructions for the payment worker

Emission is fire-and-forget: a Redis failure is logged and reported to the
caller as False, never raised. The booking's stored state is the source of
truth.
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"
PAYMENTS_QUEUE = "events:payments"


def _push(queue: str, event: dict) -> bool:
    try:
        redis_client.rpush(queue, json.dumps(event, default=str))
        return True
    except Exception as e:
        logger.error(f"Failed to push {event.get('type')} to {queue}: {e}")
        return False


def emit_event(event_type: str, payload: dict) -> bool:
    """
    Emit a p2p event (instant delivery).

    Consumed by the notification and calendar-sync workers.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    ok = _push(P2P_QUEUE, event)
    if ok:
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    return ok


def emit_payment_instruction(payload: dict) -> bool:
    """Hand a payment instruction to the payment worker."""
    event = {
        "type": "payment_instruction",
        **payload,
        "ts": int(time.time()),
    }
    ok = _push(PAYMENTS_QUEUE, event)
    if ok:
        logger.info(
            f"Payment instruction {payload.get('instruction_id')} emitted → {PAYMENTS_QUEUE}"
        )
    return ok


def booking_event_payload(booking) -> dict:
    """Common fields for booking lifecycle events."""
    return {
        "booking_id": booking.id,
        "provider_id": booking.provider_id,
        "client_id": booking.client_id,
        "service_id": booking.service_id,
        "status": booking.status,
        "appointment_date": booking.appointment_date.isoformat(),
        "appointment_time": booking.appointment_time,
        "appointment_end_time": booking.appointment_end_time,
    }
