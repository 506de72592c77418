# barberqueue/routers/favorites_routes.py

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import FavoritePublic
from barberqueue.auth import get_current_user
from barberqueue.services import shop_service

router = APIRouter(
    tags=["favorites"],
)


@router.get("/favorites", response_model=List[FavoritePublic])
def list_favorites(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return shop_service.list_favorites(session, current_user["id"])


@router.put("/shops/{shop_id}/favorite", response_model=FavoritePublic)
def add_favorite(
    shop_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return shop_service.add_favorite(session, current_user["id"], shop_id)


@router.delete("/shops/{shop_id}/favorite", status_code=204)
def remove_favorite(
    shop_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    shop_service.remove_favorite(session, current_user["id"], shop_id)
    return Response(status_code=204)
