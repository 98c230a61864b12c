# backend/beauty_booking/routers/reschedule_requests.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.bookings import BookingRead
from ..schemas.reschedule_requests import (
    RescheduleRequestApprove,
    RescheduleRequestApproved,
    RescheduleRequestCreate,
    RescheduleRequestDeny,
    RescheduleRequestRead,
)
from ..services.clock import get_clock
from ..services.reschedule_requests import (
    approve_request,
    deny_request,
    list_requests,
    request_reschedule,
)

router = APIRouter(tags=["reschedule_requests"])


@router.get("/bookings/{booking_id}/reschedule-requests", response_model=list[RescheduleRequestRead])
def get_booking_requests(booking_id: int, db: Session = Depends(get_db)):
    return list_requests(db, booking_id)


@router.post(
    "/bookings/{booking_id}/reschedule-requests",
    response_model=RescheduleRequestRead,
    status_code=status.HTTP_201_CREATED,
)
def create_request(
    booking_id: int,
    data: RescheduleRequestCreate,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return request_reschedule(db, booking_id, **data.model_dump(), clock=clock)


@router.post("/reschedule-requests/{request_id}/approve", response_model=RescheduleRequestApproved)
def approve(
    request_id: int,
    data: RescheduleRequestApprove,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    request, booking = approve_request(db, request_id, data.responder, clock=clock)
    return RescheduleRequestApproved(
        request=RescheduleRequestRead.model_validate(request),
        booking=BookingRead.model_validate(booking),
    )


@router.post("/reschedule-requests/{request_id}/deny", response_model=RescheduleRequestRead)
def deny(
    request_id: int,
    data: RescheduleRequestDeny,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return deny_request(db, request_id, data.responder, data.reason, clock=clock)
