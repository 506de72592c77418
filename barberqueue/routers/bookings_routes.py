# barberqueue/routers/bookings_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import BookingPublic, MyBooking, StatusUpdate, ReviewCreate, ReviewPublic
from barberqueue.auth import get_current_user
from barberqueue.deps import require_role
from barberqueue.services import queue_service, rating_service

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.get("/me", response_model=List[MyBooking])
def list_my_bookings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return queue_service.customer_bookings(session, current_user["id"])


@router.patch("/{booking_id}/status", response_model=BookingPublic)
def update_booking_status(
    booking_id: int,
    update: StatusUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    # status change and queue re-sequencing commit together
    return queue_service.update_booking_status(
        session, booking_id, update.status.value, current_user["id"]
    )


@router.patch("/{booking_id}/cancel", response_model=BookingPublic)
def cancel_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return queue_service.cancel_booking(session, booking_id, current_user["id"])


@router.post("/{booking_id}/review", response_model=ReviewPublic, status_code=201)
def review_booking(
    booking_id: int,
    review: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return rating_service.create_review(
        session,
        booking_id,
        current_user["id"],
        review.rating,
        review.review_text,
        review.tags,
    )
