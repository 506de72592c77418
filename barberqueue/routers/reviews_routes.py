# barberqueue/routers/reviews_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import ReviewPublic, ReviewUpdate
from barberqueue.auth import get_current_user
from barberqueue.services import rating_service

router = APIRouter(
    tags=["reviews"],
)


@router.get("/shops/{shop_id}/reviews", response_model=List[ReviewPublic])
def list_shop_reviews(
    shop_id: int,
    session: Session = Depends(get_session),
):
    return rating_service.shop_reviews(session, shop_id)


@router.patch("/reviews/{review_id}", response_model=ReviewPublic)
def update_review(
    review_id: int,
    changes: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return rating_service.update_review(
        session,
        review_id,
        current_user["id"],
        **changes.model_dump(exclude_unset=True),
    )
