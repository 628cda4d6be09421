# store_ratings/api/routes/stores.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from store_ratings.core.config import settings
from store_ratings.core.security import get_current_user
from store_ratings.db.base import get_db
from store_ratings.db.models.user import User
from store_ratings.schemas.rating import RatingEnvelope, RatingListResponse, RatingResponse, RatingSubmit, UserRatingMini
from store_ratings.schemas.store import (
    StoreAdminItem,
    StoreDetailResponse,
    StoreListItem,
    StoreListResponse,
    StoreResponse,
    StoreUpdate,
)
from store_ratings.api.shaping import rating_with_user
from store_ratings.services import rating_service, store_query, store_service

router = APIRouter(prefix="/stores", tags=["stores"])


# -------------------------
# Listing / search
# -------------------------
@router.get("", response_model=StoreListResponse)
def list_stores(
    name: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="name | averageRating | createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc | desc"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = store_query.list_stores(
        db,
        filters=store_query.StoreFilters(name=name, address=address),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=limit,
        principal=current_user,
    )
    stores = [
        StoreListItem.model_validate(store).model_copy(update={"user_rating": own})
        for store, own in result.rows
    ]
    return StoreListResponse(stores=stores, pagination=result.pagination())


# -------------------------
# Single store
# -------------------------
@router.get("/{store_id}", response_model=StoreDetailResponse)
def get_store(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    store, own = store_query.get_store_with_user_rating(db, current_user, store_id)
    return StoreDetailResponse(
        store=StoreResponse.model_validate(store),
        user_rating=UserRatingMini.model_validate(own) if own else None,
    )


@router.patch("/{store_id}", response_model=StoreAdminItem)
def update_store(
    store_id: int,
    payload: StoreUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    store = store_service.update_store(db, current_user, store_id, payload)
    return StoreAdminItem.model_validate(store)


@router.delete("/{store_id}")
def deactivate_store(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    store = store_service.deactivate_store(db, current_user, store_id)
    return {"message": "Store deactivated successfully", "storeId": store.id}


# -------------------------
# Ratings
# -------------------------
@router.get("/{store_id}/ratings", response_model=RatingListResponse)
def list_ratings(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = store_query.list_store_ratings(db, current_user, store_id)
    return RatingListResponse(ratings=[rating_with_user(r, u) for r, u in rows])


@router.post("/{store_id}/ratings", response_model=RatingEnvelope, status_code=status.HTTP_201_CREATED)
def submit_rating(
    store_id: int,
    payload: RatingSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rating = rating_service.submit_rating(db, current_user, store_id, payload.rating, payload.review)
    return RatingEnvelope(message="Rating submitted successfully", rating=RatingResponse.model_validate(rating))


@router.put("/{store_id}/ratings", response_model=RatingEnvelope)
def update_rating(
    store_id: int,
    payload: RatingSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rating = rating_service.update_rating(db, current_user, store_id, payload.rating, payload.review)
    return RatingEnvelope(message="Rating updated successfully", rating=RatingResponse.model_validate(rating))


@router.delete("/{store_id}/ratings")
def delete_rating(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rating_service.delete_rating(db, current_user, store_id)
    return {"message": "Rating deleted successfully"}
