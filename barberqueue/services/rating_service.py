# barberqueue/services/rating_service.py

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .. import core
from ..errors import ConflictError, NotFoundError, PermissionDeniedError
from ..models import Review, Shop
from .queue_service import get_booking, get_shop

logger = logging.getLogger(__name__)


def recompute_shop_rating(session: Session, shop_id: int) -> Shop:
    """
    Rebuild the shop's rating average and review count from every review it
    has. Recounting instead of incrementing keeps the cache from drifting.
    Flushes, does not commit.
    """
    shop = get_shop(session, shop_id)
    ratings = session.exec(
        select(Review.rating).where(Review.shop_id == shop_id)
    ).all()

    shop.rating_avg, shop.total_reviews = core.rating_aggregate(list(ratings))
    session.add(shop)
    session.flush()

    logger.debug("Shop %s rating %.2f over %d reviews", shop_id, shop.rating_avg, shop.total_reviews)
    return shop


def create_review(
    session: Session,
    booking_id: int,
    user_id: int,
    rating: int,
    review_text: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Review:
    booking = get_booking(session, booking_id)
    if booking.user_id != user_id:
        raise PermissionDeniedError("Forbidden")
    if booking.status != "completed":
        raise ConflictError("Only completed bookings can be reviewed")

    existing = session.exec(
        select(Review)
        .where(Review.user_id == user_id)
        .where(Review.booking_id == booking_id)
    ).first()
    if existing is not None:
        raise ConflictError("Booking already reviewed")

    review = Review(
        user_id=user_id,
        shop_id=booking.shop_id,
        booking_id=booking.id,
        rating=rating,
        review_text=review_text,
        tags=list(tags or []),
    )
    session.add(review)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Booking already reviewed")

    recompute_shop_rating(session, booking.shop_id)
    session.commit()
    session.refresh(review)

    logger.info("Review %s added for shop %s", review.id, review.shop_id)
    return review


def update_review(
    session: Session,
    review_id: int,
    user_id: int,
    **changes,
) -> Review:
    """
    Authors may correct their own review; the shop aggregate follows.
    Only the fields passed are changed, so review_text=None clears the text.
    """
    review = session.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.user_id != user_id:
        raise PermissionDeniedError("Forbidden")

    for key, value in changes.items():
        setattr(review, key, list(value) if key == "tags" else value)
    session.add(review)
    session.flush()

    recompute_shop_rating(session, review.shop_id)
    session.commit()
    session.refresh(review)
    return review


def shop_reviews(session: Session, shop_id: int) -> List[Review]:
    get_shop(session, shop_id)
    return session.exec(
        select(Review)
        .where(Review.shop_id == shop_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()
