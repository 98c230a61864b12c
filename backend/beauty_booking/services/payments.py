# backend/beauty_booking/services/payments.py
"""
Payment instruction outbox.

The engine decides amounts and direction only. Each instruction is written
as a row in the same transaction as the booking transition that caused it,
then handed to the payment worker over Redis after commit. If the hand-off
fails the row stays QUEUED for the reconciliation process to retry.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Bookings, PaymentInstructions
from .events import emit_payment_instruction
from .policy import round_money

logger = logging.getLogger(__name__)

REFUND = "REFUND"
CHARGE_BALANCE = "CHARGE_BALANCE"
RELEASE_BALANCE = "RELEASE_BALANCE"

QUEUED = "QUEUED"
SENT = "SENT"


def add_instruction(
    db: Session,
    booking: Bookings,
    kind: str,
    amount: Decimal,
    recipient: str,
    reason: Optional[str] = None,
) -> Optional[PaymentInstructions]:
    """
    Stage an instruction in the current transaction.

    Zero amounts produce no instruction.
    """
    amount = round_money(amount)
    if amount <= 0:
        return None

    instruction = PaymentInstructions(
        booking_id=booking.id,
        kind=kind,
        amount=amount,
        currency=booking.currency,
        recipient=recipient,
        payment_provider=booking.payment_provider,
        reason=reason,
        status=QUEUED,
    )
    db.add(instruction)
    return instruction


def dispatch_instructions(db: Session, instructions: list) -> None:
    """
    Emit committed instructions; mark the ones handed off as SENT.

    Failures are logged and left QUEUED, the transition is not undone.
    """
    sent = 0
    for instruction in instructions:
        if instruction is None:
            continue
        ok = emit_payment_instruction({
            "instruction_id": instruction.id,
            "booking_id": instruction.booking_id,
            "kind": instruction.kind,
            "amount": str(instruction.amount),
            "currency": instruction.currency,
            "recipient": instruction.recipient,
            "payment_provider": instruction.payment_provider,
            "reason": instruction.reason,
        })
        if ok:
            instruction.status = SENT
            sent += 1
        else:
            logger.warning(
                f"Payment instruction {instruction.id} for booking {instruction.booking_id} "
                f"left {QUEUED} for reconciliation"
            )

    if sent:
        db.commit()


def list_instructions(db: Session, booking_id: int) -> list[PaymentInstructions]:
    return (
        db.query(PaymentInstructions)
        .filter(PaymentInstructions.booking_id == booking_id)
        .order_by(PaymentInstructions.id)
        .all()
    )
