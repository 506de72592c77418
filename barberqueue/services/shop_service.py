# barberqueue/services/shop_service.py

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .. import core
from ..errors import ConflictError, NotFoundError
from ..models import Booking, Favorite, Shop
from .queue_service import get_shop, recompute_queue

logger = logging.getLogger(__name__)

TOP_SHOPS_MIN_REVIEWS = 5
TOP_SHOPS_LIMIT = 5


def get_owned_shop(session: Session, user_id: int) -> Shop:
    shop = session.exec(
        select(Shop).where(Shop.user_id == user_id)
    ).first()
    if shop is None:
        raise NotFoundError("Shop not set up")
    return shop


def get_visible_shop(session: Session, shop_id: int, viewer_id: Optional[int] = None) -> Shop:
    """Inactive shops are only visible to their owner."""
    shop = get_shop(session, shop_id)
    if not shop.is_active and shop.user_id != viewer_id:
        raise NotFoundError("Shop not found")
    return shop


def create_shop(session: Session, user_id: int, **fields) -> Shop:
    existing = session.exec(
        select(Shop).where(Shop.user_id == user_id)
    ).first()
    if existing is not None:
        raise ConflictError("Shop already exists for this barber")

    shop = Shop(user_id=user_id)
    # the constructor swaps an explicit None for the column default
    for key, value in fields.items():
        setattr(shop, key, value)
    session.add(shop)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Shop already exists for this barber")

    session.refresh(shop)
    logger.info("Shop %s created by user %s", shop.id, user_id)
    return shop


def update_shop(session: Session, shop: Shop, **changes) -> Shop:
    duration_changed = (
        "avg_service_duration" in changes
        and changes["avg_service_duration"] != shop.avg_service_duration
    )
    for key, value in changes.items():
        setattr(shop, key, value)
    session.add(shop)
    session.flush()

    # waits are derived from the duration
    if duration_changed:
        recompute_queue(session, shop.id)

    session.commit()
    session.refresh(shop)
    return shop


def _waiting_counts(session: Session, shop_ids: List[int]) -> dict:
    if not shop_ids:
        return {}
    rows = session.exec(
        select(Booking.shop_id, func.count(Booking.id))
        .where(Booking.shop_id.in_(shop_ids))
        .where(Booking.status == "waiting")
        .group_by(Booking.shop_id)
    ).all()
    return {shop_id: count for shop_id, count in rows}


def nearby_shops(session: Session, lat: Optional[float] = None, lng: Optional[float] = None) -> List[dict]:
    """
    Active shops nearest first. Without a location, or for shops without
    coordinates, the distance is 0. Each shop carries its current waiting
    count and the wait a new customer would face.
    """
    shops = session.exec(
        select(Shop).where(Shop.is_active == True)  # noqa: E712
    ).all()
    counts = _waiting_counts(session, [s.id for s in shops])

    result = []
    for shop in shops:
        if lat is not None and lng is not None and shop.latitude is not None and shop.longitude is not None:
            distance = core.haversine_km(lat, lng, shop.latitude, shop.longitude)
        else:
            distance = 0.0
        waiting = counts.get(shop.id, 0)
        entry = shop.model_dump()
        entry["distance"] = round(distance, 3)
        entry["current_queue_count"] = waiting
        entry["estimated_wait_time"] = waiting * (shop.avg_service_duration or 0)
        result.append(entry)

    result.sort(key=lambda e: e["distance"])
    return result


def top_shops(session: Session) -> List[Shop]:
    return session.exec(
        select(Shop)
        .where(Shop.is_active == True)  # noqa: E712
        .where(Shop.total_reviews >= TOP_SHOPS_MIN_REVIEWS)
        .order_by(Shop.rating_avg.desc(), Shop.id)
        .limit(TOP_SHOPS_LIMIT)
    ).all()


def add_favorite(session: Session, user_id: int, shop_id: int) -> Favorite:
    """Idempotent: favoriting twice returns the existing row."""
    get_visible_shop(session, shop_id, user_id)
    existing = session.exec(
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .where(Favorite.shop_id == shop_id)
    ).first()
    if existing is not None:
        return existing

    favorite = Favorite(user_id=user_id, shop_id=shop_id)
    session.add(favorite)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Shop already in favorites")

    session.refresh(favorite)
    return favorite


def remove_favorite(session: Session, user_id: int, shop_id: int) -> None:
    favorite = session.exec(
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .where(Favorite.shop_id == shop_id)
    ).first()
    if favorite is None:
        raise NotFoundError("Favorite not found")
    session.delete(favorite)
    session.commit()


def list_favorites(session: Session, user_id: int) -> List[Favorite]:
    return session.exec(
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    ).all()
