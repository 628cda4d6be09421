# store_ratings/schemas/rating.py
from datetime import datetime
from typing import Optional

from pydantic import Field, conint

from store_ratings.schemas.base import CamelModel


class RatingSubmit(CamelModel):
    # strict: JSON true, "5" and 4.0 are rejected rather than coerced
    rating: conint(strict=True, ge=1, le=5) = Field(..., description="Rating 1-5")
    review: Optional[str] = Field(None, max_length=2000)


class RatingResponse(CamelModel):
    id: int
    store_id: int
    user_id: int
    rating: int
    review: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserRatingMini(CamelModel):
    id: int
    rating: int
    review: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RaterMini(CamelModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None


class RatingWithUser(RatingResponse):
    user: RaterMini


class RatingEnvelope(CamelModel):
    message: str
    rating: RatingResponse


class RatingListResponse(CamelModel):
    ratings: list[RatingWithUser]
