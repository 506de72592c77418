# barberqueue/services/queue_service.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from .. import core
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import Booking, Profile, Shop

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("waiting", "in_progress")


def get_shop(session: Session, shop_id: int) -> Shop:
    shop = session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


def get_booking(session: Session, booking_id: int) -> Booking:
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def count_waiting(session: Session, shop_id: int) -> int:
    return session.exec(
        select(func.count(Booking.id))
        .where(Booking.shop_id == shop_id)
        .where(Booking.status == "waiting")
    ).one()


def recompute_queue(session: Session, shop_id: int) -> List[Booking]:
    """
    Re-sequence the shop's waiting bookings by join time and refresh their
    estimated waits. Bookings no longer waiting lose their position.

    Runs inside the caller's transaction: it flushes but never commits.
    """
    shop = get_shop(session, shop_id)

    waiting = session.exec(
        select(Booking)
        .where(Booking.shop_id == shop_id)
        .where(Booking.status == "waiting")
        .order_by(Booking.joined_at, Booking.id)
    ).all()
    by_id = {b.id: b for b in waiting}

    sequenced = core.sequence_queue(
        ((b.joined_at, b.id) for b in waiting), shop.avg_service_duration
    )
    for booking_id, position, wait in sequenced:
        booking = by_id[booking_id]
        if booking.queue_position != position or booking.estimated_wait_time != wait:
            booking.queue_position = position
            booking.estimated_wait_time = wait
            session.add(booking)

    stale = session.exec(
        select(Booking)
        .where(Booking.shop_id == shop_id)
        .where(Booking.status != "waiting")
        .where(Booking.queue_position.is_not(None))
    ).all()
    for booking in stale:
        booking.queue_position = None
        booking.estimated_wait_time = None
        session.add(booking)

    session.flush()
    logger.debug("Recomputed queue for shop %s: %d waiting", shop_id, len(sequenced))
    return [by_id[booking_id] for booking_id, _, _ in sequenced]


def recount_shop_bookings(session: Session, shop: Shop) -> None:
    shop.total_bookings = session.exec(
        select(func.count(Booking.id)).where(Booking.shop_id == shop.id)
    ).one()
    session.add(shop)


def join_queue(
    session: Session,
    shop_id: int,
    user_id: int,
    service_name: str,
    service_price: Optional[float] = None,
    walk_in: bool = False,
) -> Booking:
    """Add a waiting booking and re-sequence the shop's queue in one transaction."""
    shop = get_shop(session, shop_id)
    if not shop.is_active:
        raise NotFoundError("Shop not found")

    price = service_price
    if shop.services and not walk_in:
        offered = {s.get("name"): s for s in shop.services}
        if service_name not in offered:
            raise ValidationError("Service not available")
        if offered[service_name].get("price") is not None:
            price = offered[service_name]["price"]

    if count_waiting(session, shop.id) >= shop.max_queue_limit:
        raise ConflictError("Queue is full")

    if not walk_in:
        already = session.exec(
            select(Booking)
            .where(Booking.shop_id == shop.id)
            .where(Booking.user_id == user_id)
            .where(Booking.status.in_(ACTIVE_STATUSES))
        ).first()
        if already is not None:
            raise ConflictError("Already in this queue")

    booking = Booking(
        user_id=user_id,
        shop_id=shop.id,
        service_name=service_name,
        service_price=price,
        status="waiting",
    )
    session.add(booking)
    session.flush()

    recompute_queue(session, shop.id)
    recount_shop_bookings(session, shop)
    session.commit()
    session.refresh(booking)

    logger.info("User %s joined shop %s queue at position %s", user_id, shop.id, booking.queue_position)
    return booking


def _apply_status(session: Session, booking: Booking, new_status: str) -> Booking:
    if booking.status == new_status:
        raise ConflictError(f"Booking already {new_status}")
    if not core.can_transition(booking.status, new_status):
        raise ConflictError(f"Cannot move booking from {booking.status} to {new_status}")

    old_status = booking.status
    booking.status = new_status
    if new_status == "in_progress":
        booking.started_at = core.utcnow()
    elif new_status == "completed":
        booking.completed_at = core.utcnow()
    session.add(booking)
    session.flush()

    recompute_queue(session, booking.shop_id)
    session.commit()
    session.refresh(booking)

    logger.info("Booking %s: %s -> %s", booking.id, old_status, new_status)
    return booking


def update_booking_status(session: Session, booking_id: int, new_status: str, actor_id: int) -> Booking:
    """Shop owner moves a booking through the status machine."""
    booking = get_booking(session, booking_id)
    shop = get_shop(session, booking.shop_id)
    if shop.user_id != actor_id:
        raise PermissionDeniedError("Forbidden")
    return _apply_status(session, booking, new_status)


def cancel_booking(session: Session, booking_id: int, actor_id: int) -> Booking:
    """The booking's customer or the shop owner may cancel."""
    booking = get_booking(session, booking_id)
    shop = get_shop(session, booking.shop_id)
    if actor_id != booking.user_id and actor_id != shop.user_id:
        raise PermissionDeniedError("Forbidden")
    if booking.status == "cancelled":
        raise ConflictError("Booking already cancelled")
    return _apply_status(session, booking, "cancelled")


def shop_queue(session: Session, shop: Shop) -> List[dict]:
    """Waiting and in-progress bookings, oldest first, with the customer's name and phone."""
    bookings = session.exec(
        select(Booking)
        .where(Booking.shop_id == shop.id)
        .where(Booking.status.in_(ACTIVE_STATUSES))
        .order_by(Booking.joined_at, Booking.id)
    ).all()
    if not bookings:
        return []

    user_ids = {b.user_id for b in bookings}
    profiles = session.exec(
        select(Profile).where(Profile.user_id.in_(user_ids))
    ).all()
    by_user = {p.user_id: p for p in profiles}

    queue = []
    for booking in bookings:
        profile = by_user.get(booking.user_id)
        entry = booking.model_dump()
        entry["profiles"] = {
            "name": profile.name if profile and profile.name else "Unknown Customer",
            "phone": profile.phone if profile else "",
        }
        queue.append(entry)
    return queue


def customer_bookings(session: Session, user_id: int) -> List[dict]:
    rows = session.exec(
        select(Booking, Shop)
        .join(Shop, Shop.id == Booking.shop_id)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    ).all()

    result = []
    for booking, shop in rows:
        entry = booking.model_dump()
        entry["shop"] = {"shop_name": shop.shop_name, "shop_address": shop.shop_address}
        result.append(entry)
    return result


def today_stats(session: Session, shop: Shop, on_date: Optional[date] = None) -> dict:
    on_date = on_date or core.utcnow().date()
    day_start = datetime.combine(on_date, datetime.min.time())
    day_end = day_start + timedelta(days=1)

    bookings = session.exec(
        select(Booking)
        .where(Booking.shop_id == shop.id)
        .where(Booking.joined_at >= day_start)
        .where(Booking.joined_at < day_end)
    ).all()

    completed = [b for b in bookings if b.status == "completed"]
    return {
        "total_bookings": len(bookings),
        "served_customers": len(completed),
        "avg_rating": shop.rating_avg,
        "total_income": sum(b.service_price or 0 for b in completed),
    }
