# barberqueue/schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from datetime import datetime
from typing import List, Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    customer = "customer"
    barber = "barber"
    admin = "admin"


class BookingStatus(str, Enum):
    waiting = "waiting"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class RegistrationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None


class ProfilePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    phone: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class ShopService(BaseModel):
    name: str
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)


class ShopCreate(BaseModel):
    shop_name: str = Field(min_length=1)
    shop_address: str = Field(min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    services: List[ShopService] = []
    working_hours: dict = {}
    cover_image_url: Optional[str] = None
    max_queue_limit: int = Field(default=10, ge=1)
    avg_service_duration: Optional[int] = Field(default=30, ge=0)


class ShopUpdate(BaseModel):
    shop_name: Optional[str] = Field(default=None, min_length=1)
    shop_address: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    services: Optional[List[ShopService]] = None
    working_hours: Optional[dict] = None
    cover_image_url: Optional[str] = None
    max_queue_limit: Optional[int] = Field(default=None, ge=1)
    avg_service_duration: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator(
        "shop_name", "shop_address", "services", "working_hours", "max_queue_limit", "is_active"
    )
    @classmethod
    def not_null(cls, value):
        # omit the field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class ShopPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    shop_name: str
    shop_address: str
    latitude: Optional[float]
    longitude: Optional[float]
    services: List[dict]
    working_hours: dict
    cover_image_url: Optional[str]
    rating_avg: float
    total_reviews: int
    total_bookings: int
    max_queue_limit: int
    avg_service_duration: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class NearbyShop(ShopPublic):
    distance: float
    current_queue_count: int
    estimated_wait_time: int


class JoinQueue(BaseModel):
    service_name: str = Field(min_length=1)
    service_price: Optional[float] = Field(default=None, ge=0)


class WalkInCreate(BaseModel):
    service_name: str = "Walk-in Haircut"
    service_price: Optional[float] = Field(default=25, ge=0)


class StatusUpdate(BaseModel):
    status: BookingStatus


class BookingPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    shop_id: int
    service_name: str
    service_price: Optional[float]
    status: BookingStatus
    queue_position: Optional[int]
    estimated_wait_time: Optional[int]
    joined_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class CustomerInfo(BaseModel):
    name: str
    phone: str


class QueueEntry(BookingPublic):
    profiles: CustomerInfo


class ShopSummary(BaseModel):
    shop_name: str
    shop_address: str


class MyBooking(BookingPublic):
    shop: ShopSummary


class TodayStats(BaseModel):
    total_bookings: int
    served_customers: int
    avg_rating: float
    total_income: float


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    review_text: Optional[str] = None
    tags: List[str] = []


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review_text: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("rating", "tags")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ReviewPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    shop_id: int
    booking_id: int
    rating: int
    review_text: Optional[str]
    tags: List[str]
    created_at: datetime


class FavoritePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    shop_id: int
    created_at: datetime


class RegistrationCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    shop_name: str = Field(min_length=1)
    shop_address: str = Field(min_length=1)
    services_offered: str = Field(min_length=1)
    working_hours: str = Field(min_length=1)


class RegistrationDecision(BaseModel):
    status: RegistrationStatus


class RegistrationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    shop_name: str
    shop_address: str
    services_offered: str
    working_hours: str
    status: RegistrationStatus
    created_at: datetime
