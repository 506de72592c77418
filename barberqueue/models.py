# barberqueue/models.py

from typing import Optional, List
from datetime import datetime

from sqlalchemy import CheckConstraint, UniqueConstraint, event
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from . import core


def _now() -> datetime:
    return core.utcnow()


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_now)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    name: str = ""
    phone: str = ""
    role: str = "customer"  # customer, barber or admin
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Shop(SQLModel, table=True):
    __tablename__ = "barber_shops"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)

    shop_name: str
    shop_address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # [{"name": "Haircut", "price": 25, "duration": 30}, ...]
    services: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # {"mon": "09:00-18:00", ...}
    working_hours: dict = Field(default_factory=dict, sa_column=Column(JSON))
    cover_image_url: Optional[str] = None

    # cached aggregates, recomputed by services
    rating_avg: float = 0
    total_reviews: int = 0
    total_bookings: int = 0

    max_queue_limit: int = 10
    avg_service_duration: Optional[int] = 30  # minutes
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    shop_id: int = Field(foreign_key="barber_shops.id", index=True)

    service_name: str
    service_price: Optional[float] = None
    status: str = Field(default="waiting", index=True)

    # derived from the waiting set, see services.recompute_queue
    queue_position: Optional[int] = None
    estimated_wait_time: Optional[int] = None  # minutes

    joined_at: datetime = Field(default_factory=_now, index=True)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Review(SQLModel, table=True):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "booking_id", name="uq_review_user_booking"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    shop_id: int = Field(foreign_key="barber_shops.id", index=True)
    booking_id: int = Field(foreign_key="bookings.id")

    rating: int
    review_text: Optional[str] = None
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=_now)


class Favorite(SQLModel, table=True):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "shop_id", name="uq_favorite_user_shop"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    shop_id: int = Field(foreign_key="barber_shops.id")
    created_at: datetime = Field(default_factory=_now)


class RegistrationRequest(SQLModel, table=True):
    __tablename__ = "barber_registration_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone: str
    shop_name: str
    shop_address: str
    services_offered: str
    working_hours: str
    status: str = "pending"  # pending, approved or rejected
    created_at: datetime = Field(default_factory=_now)


def touch_updated_at(mapper, connection, target):
    # whatever the caller put in updated_at is overwritten
    target.updated_at = core.utcnow()


for _model in (Profile, Shop, Booking):
    event.listen(_model, "before_update", touch_updated_at)
