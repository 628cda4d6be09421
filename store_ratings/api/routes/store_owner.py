# store_ratings/api/routes/store_owner.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from store_ratings.api.shaping import owner_store_view, rating_with_user
from store_ratings.core.security import get_current_user
from store_ratings.db.base import get_db
from store_ratings.db.models.user import User
from store_ratings.schemas.store import OwnerStoreWithRatings, StoreAdminItem
from store_ratings.services import store_query, store_service

router = APIRouter(prefix="/store-owner", tags=["store-owner"])


# --------------------------
# 1) /store-owner/store
# --------------------------
@router.get("/store")
def owner_store(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    store = store_service.primary_store_for_owner(db, current_user)
    return {"data": owner_store_view(store)}


# --------------------------
# 2) /store-owner/ratings
# --------------------------
@router.get("/ratings")
def owner_ratings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    store = store_service.primary_store_for_owner(db, current_user)
    rows = store_query.ratings_with_users(db, store.id)
    return {"data": [rating_with_user(r, u) for r, u in rows]}


# --------------------------
# 3) /store-owner/store-with-ratings
# --------------------------
@router.get("/store-with-ratings")
def owner_store_with_ratings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    store = store_service.primary_store_for_owner(db, current_user)
    rows = store_query.ratings_with_users(db, store.id)
    view = owner_store_view(store)
    data = OwnerStoreWithRatings(
        **view.model_dump(),
        ratings=[rating_with_user(r, u) for r, u in rows],
    )
    return {"data": data}


# --------------------------
# 4) /store-owner/stores  (every owned store, active or not)
# --------------------------
@router.get("/stores")
def owner_stores(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    stores = store_service.stores_for_owner(db, current_user)
    return {"data": [StoreAdminItem.model_validate(s) for s in stores]}
