# store_ratings/api/shaping.py
from typing import Optional

from store_ratings.db.models.rating import Rating
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.rating import RaterMini, RatingWithUser
from store_ratings.schemas.store import OwnerStoreView


def rating_with_user(rating: Rating, user: Optional[User]) -> RatingWithUser:
    return RatingWithUser(
        id=rating.id,
        store_id=rating.store_id,
        user_id=rating.user_id,
        rating=rating.rating,
        review=rating.review,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
        user=RaterMini(
            id=rating.user_id,
            name=user.name if user else None,
            email=user.email if user else None,
        ),
    )


def owner_store_view(store: Store) -> OwnerStoreView:
    # owner dashboard names the aggregate overallRating / ratingCount
    return OwnerStoreView(
        id=store.id,
        name=store.name,
        address=store.address,
        email=store.email,
        phone=store.phone,
        description=store.description,
        overall_rating=store.average_rating,
        rating_count=store.total_ratings,
        created_at=store.created_at,
    )
