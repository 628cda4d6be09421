# store_ratings/schemas/admin.py
from typing import Optional

from store_ratings.schemas.base import CamelModel
from store_ratings.schemas.rating import RatingWithUser
from store_ratings.schemas.store import StoreAdminItem
from store_ratings.schemas.user import UserListItem, UserResponse


class UserListResponse(CamelModel):
    users: list[UserListItem]


class UserDetailResponse(CamelModel):
    user: UserListItem
    stores: Optional[list[StoreAdminItem]] = None


class StoreDetailAdminResponse(CamelModel):
    store: StoreAdminItem
    owner: Optional[UserResponse] = None
    ratings: list[RatingWithUser]


class PlatformStats(CamelModel):
    total_users: int
    total_stores: int
    total_ratings: int


class StatsResponse(CamelModel):
    stats: PlatformStats


class RecalculateResponse(CamelModel):
    message: str
    stores_updated: int
