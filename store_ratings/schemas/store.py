# store_ratings/schemas/store.py
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from store_ratings.schemas.base import CamelModel
from store_ratings.schemas.rating import RatingWithUser, UserRatingMini


class StoreCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    address: str = Field(..., min_length=5, max_length=400)
    description: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    owner_id: int


# Owner / admin updates a store
class StoreUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=5, max_length=400)
    description: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    # owner_id and reactivation are honoured for administrators only
    owner_id: Optional[int] = None


class StoreResponse(CamelModel):
    id: int
    name: str
    email: str
    address: str
    description: Optional[str] = None
    phone: Optional[str] = None
    average_rating: float
    total_ratings: int
    created_at: datetime


class StoreAdminItem(StoreResponse):
    owner_id: int
    is_active: bool
    updated_at: Optional[datetime] = None


class StoreListItem(StoreResponse):
    # the requesting principal's own rating, if any
    user_rating: Optional[int] = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class StoreListResponse(CamelModel):
    stores: list[StoreListItem]
    pagination: Pagination


class AdminStoreListResponse(CamelModel):
    stores: list[StoreAdminItem]
    pagination: Pagination


class StoreDetailResponse(CamelModel):
    store: StoreResponse
    user_rating: Optional[UserRatingMini] = None


class StoreCreatedResponse(CamelModel):
    message: str
    store: StoreAdminItem


class OwnerStoreView(CamelModel):
    id: int
    name: str
    address: str
    email: str
    phone: Optional[str] = None
    description: Optional[str] = None
    overall_rating: float
    rating_count: int
    created_at: datetime


class OwnerStoreWithRatings(OwnerStoreView):
    ratings: list[RatingWithUser]
