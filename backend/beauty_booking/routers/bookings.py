# backend/beauty_booking/routers/bookings.py
# Transitions are POST actions; PATCH = 405, DELETE = 405

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.bookings import (
    BalancePayment,
    BookingCancel,
    BookingCreate,
    BookingNoShow,
    BookingRead,
    BookingReschedule,
    CancellationPreview,
    Party,
    PaymentInstructionRead,
    TransitionResponse,
)
from ..services import bookings as booking_service
from ..services.clock import get_clock
from ..services.payments import list_instructions

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _transition_response(result: booking_service.TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        booking=BookingRead.model_validate(result.booking),
        fee=result.fee,
        refund=result.refund,
        instructions=[PaymentInstructionRead.model_validate(i) for i in result.instructions],
    )


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    provider_id: Optional[int] = None,
    client_id: Optional[int] = None,
    booking_status: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return booking_service.list_bookings(db, provider_id, client_id, booking_status)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, id)


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return booking_service.create_booking(db, **data.model_dump(), clock=clock)


@router.post("/{id}/confirm", response_model=BookingRead)
def confirm_booking(id: int, db: Session = Depends(get_db), clock=Depends(get_clock)):
    return booking_service.confirm_booking(db, id, clock=clock)


@router.get("/{id}/cancellation-preview", response_model=CancellationPreview)
def preview_cancellation(
    id: int,
    initiator: Party,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    outcome = booking_service.preview_cancellation(db, id, initiator, clock=clock)
    return CancellationPreview(
        booking_id=id,
        initiator=initiator,
        fee=outcome.fee,
        refund=outcome.refund,
        can_reschedule=booking_service.can_reschedule(db, id, clock=clock),
    )


@router.post("/{id}/cancel", response_model=TransitionResponse)
def cancel_booking(
    id: int,
    data: BookingCancel,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    result = booking_service.cancel_booking(db, id, data.initiator, data.reason, clock=clock)
    return _transition_response(result)


@router.post("/{id}/reschedule", response_model=BookingRead)
def reschedule_booking(
    id: int,
    data: BookingReschedule,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return booking_service.reschedule_booking(db, id, data.new_date, data.new_time, clock=clock)


@router.post("/{id}/no-show", response_model=TransitionResponse)
def mark_no_show(
    id: int,
    data: BookingNoShow,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return _transition_response(
        booking_service.mark_no_show(db, id, data.reported_by, clock=clock)
    )


@router.post("/{id}/complete", response_model=TransitionResponse)
def complete_booking(id: int, db: Session = Depends(get_db), clock=Depends(get_clock)):
    return _transition_response(booking_service.complete_booking(db, id, clock=clock))


@router.post("/{id}/deposit-paid", response_model=BookingRead)
def record_deposit_paid(id: int, db: Session = Depends(get_db), clock=Depends(get_clock)):
    return booking_service.record_deposit_paid(db, id, clock=clock)


@router.post("/{id}/balance-paid", response_model=BookingRead)
def record_balance_paid(
    id: int,
    data: BalancePayment,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return booking_service.record_balance_paid(db, id, data.amount, clock=clock)


@router.get("/{id}/payment-instructions", response_model=list[PaymentInstructionRead])
def get_payment_instructions(id: int, db: Session = Depends(get_db)):
    booking_service.get_booking(db, id)
    return list_instructions(db, id)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
