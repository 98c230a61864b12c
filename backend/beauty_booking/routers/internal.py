# backend/beauty_booking/routers/internal.py
"""
Internal API endpoints for trusted consumers.

Called by the scheduler, not by clients. Must not be exposed publicly.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.bookings import cancel_unpaid_balance, decline_stale_pending, detect_no_shows
from ..services.clock import get_clock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["internal"])


class DeclineStaleResponse(BaseModel):
    declined: list[int]
    count: int


class NoShowSweepResponse(BaseModel):
    marked: list[int]
    count: int


class UnpaidBalanceResponse(BaseModel):
    cancelled: list[int]
    count: int


@router.post("/bookings/decline-stale", response_model=DeclineStaleResponse)
def decline_stale(
    hours: Optional[int] = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Auto-decline PENDING bookings with a paid deposit the provider never confirmed."""
    declined = decline_stale_pending(db, clock=clock, hours=hours)
    if declined:
        logger.info(f"Auto-declined bookings: {declined}")
    return DeclineStaleResponse(declined=declined, count=len(declined))


@router.post("/bookings/detect-no-shows", response_model=NoShowSweepResponse)
def sweep_no_shows(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Mark overdue CONFIRMED bookings as client no-shows."""
    marked = detect_no_shows(db, clock=clock)
    if marked:
        logger.info(f"Marked no-show: {marked}")
    return NoShowSweepResponse(marked=marked, count=len(marked))


@router.post("/bookings/cancel-unpaid-balance", response_model=UnpaidBalanceResponse)
def sweep_unpaid_balance(
    hours: Optional[int] = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Cancel CONFIRMED bookings whose balance is still unpaid after the appointment."""
    cancelled = cancel_unpaid_balance(db, clock=clock, hours=hours)
    if cancelled:
        logger.info(f"Auto-cancelled for unpaid balance: {cancelled}")
    return UnpaidBalanceResponse(cancelled=cancelled, count=len(cancelled))
