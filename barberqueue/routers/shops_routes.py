# barberqueue/routers/shops_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import (
    ShopCreate,
    ShopUpdate,
    ShopPublic,
    NearbyShop,
    JoinQueue,
    WalkInCreate,
    BookingPublic,
    QueueEntry,
    TodayStats,
)
from barberqueue.auth import get_current_user
from barberqueue.deps import require_role
from barberqueue.services import queue_service, shop_service

router = APIRouter(
    prefix="/shops",
    tags=["shops"],
)


@router.post("", response_model=ShopPublic, status_code=201)
def create_shop(
    shop: ShopCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")  # only barbers own shops
    return shop_service.create_shop(session, current_user["id"], **shop.model_dump())


@router.get("/nearby", response_model=List[NearbyShop])
def nearby_shops(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return shop_service.nearby_shops(session, lat, lng)


@router.get("/top", response_model=List[ShopPublic])
def top_shops(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return shop_service.top_shops(session)


@router.get("/me", response_model=ShopPublic)
def get_my_shop(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    return shop_service.get_owned_shop(session, current_user["id"])


@router.patch("/me", response_model=ShopPublic)
def update_my_shop(
    changes: ShopUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    shop = shop_service.get_owned_shop(session, current_user["id"])
    return shop_service.update_shop(session, shop, **changes.model_dump(exclude_unset=True))


@router.get("/me/queue", response_model=List[QueueEntry])
def my_queue(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    shop = shop_service.get_owned_shop(session, current_user["id"])
    return queue_service.shop_queue(session, shop)


@router.post("/me/walk-ins", response_model=BookingPublic, status_code=201)
def add_walk_in(
    walk_in: Optional[WalkInCreate] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    walk_in = walk_in or WalkInCreate()
    shop = shop_service.get_owned_shop(session, current_user["id"])

    # the barber's own identity stands in for the walk-in customer
    return queue_service.join_queue(
        session,
        shop.id,
        current_user["id"],
        walk_in.service_name,
        walk_in.service_price,
        walk_in=True,
    )


@router.get("/me/stats", response_model=TodayStats)
def my_stats(
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    shop = shop_service.get_owned_shop(session, current_user["id"])
    return queue_service.today_stats(session, shop, on_date)


@router.get("/{shop_id}", response_model=ShopPublic)
def get_shop(
    shop_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return shop_service.get_visible_shop(session, shop_id, current_user["id"])


@router.post("/{shop_id}/queue", response_model=BookingPublic, status_code=201)
def join_queue(
    shop_id: int,
    join: JoinQueue,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    return queue_service.join_queue(
        session, shop_id, current_user["id"], join.service_name, join.service_price
    )


@router.post("/{shop_id}/queue/recompute", response_model=List[BookingPublic])
def recompute_queue(
    shop_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    shop = queue_service.get_shop(session, shop_id)
    if shop.user_id != current_user["id"]:
        require_role(current_user, "admin")

    waiting = queue_service.recompute_queue(session, shop_id)
    session.commit()
    for booking in waiting:
        session.refresh(booking)
    return waiting
