# store_ratings/api/routes/admin.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from store_ratings.api.shaping import rating_with_user
from store_ratings.core.config import settings
from store_ratings.core.policy import Action, Resource
from store_ratings.core.security import require_permission
from store_ratings.db.base import get_db
from store_ratings.db.models.rating import Rating
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.admin import (
    PlatformStats,
    RecalculateResponse,
    StatsResponse,
    StoreDetailAdminResponse,
    UserDetailResponse,
    UserListResponse,
)
from store_ratings.schemas.enums import UserRole
from store_ratings.schemas.store import AdminStoreListResponse, StoreAdminItem, StoreCreate, StoreCreatedResponse
from store_ratings.schemas.user import RoleUpdate, UserCreate, UserCreatedResponse, UserListItem, UserResponse
from store_ratings.services import rating_service, store_query, store_service, user_service

router = APIRouter(prefix="/admin", tags=["admin"])

create_users = require_permission(Resource.user, Action.create, "Administrator role required")
manage_users = require_permission(Resource.user, Action.update, "Administrator role required")
read_users = require_permission(Resource.user, Action.read, "Administrator role required")
platform_admin = require_permission(Resource.platform, Action.update, "Administrator role required")
platform_reader = require_permission(Resource.platform, Action.read, "Administrator role required")


# -------------------------
# 1. Create users per role
# -------------------------
def _create(db: Session, payload: UserCreate, role: UserRole, label: str) -> UserCreatedResponse:
    # admin-created accounts are pre-verified
    user = user_service.create_user(db, payload, role=role, verified=True)
    return UserCreatedResponse(message=f"{label} created successfully", user=UserResponse.model_validate(user))


@router.post("/users/normal", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_normal_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(create_users),
):
    return _create(db, payload, UserRole.normal_user, "Normal user")


@router.post("/users/admin", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_admin_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(create_users),
):
    return _create(db, payload, UserRole.administrator, "Admin user")


@router.post("/users/store-owner", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_store_owner(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(create_users),
):
    return _create(db, payload, UserRole.store_owner, "Store owner")


# -------------------------
# 2. List / inspect users
# -------------------------
@router.get("/users", response_model=UserListResponse)
def list_users(
    role: Optional[UserRole] = Query(None),
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(read_users),
):
    users = user_service.list_users(db, role=role, name=name, email=email, address=address)
    return UserListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.get("/users/store-owners", response_model=UserListResponse)
def list_store_owners(db: Session = Depends(get_db), current_user: User = Depends(read_users)):
    users = user_service.list_users(db, role=UserRole.store_owner)
    return UserListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def get_user_details(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(read_users)):
    user = user_service.get_user(db, user_id)
    stores = None
    if user.role == UserRole.store_owner.value:
        owned = user_service.owned_stores(db, user.id)
        if owned:
            stores = [StoreAdminItem.model_validate(s) for s in owned]
    return UserDetailResponse(user=UserListItem.model_validate(user), stores=stores)


# --------------------------------------------------
# 3. Role change, (de)activation, deletion
# --------------------------------------------------
@router.patch("/users/{user_id}/role")
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(manage_users),
):
    user = user_service.change_role(db, current_user, user_id, payload.role)
    return {"message": "User role updated successfully", "user": UserResponse.model_validate(user)}


@router.put("/users/{user_id}/activate")
def set_user_active(
    user_id: int,
    active: bool,
    db: Session = Depends(get_db),
    current_user: User = Depends(manage_users),
):
    user = user_service.set_active(db, current_user, user_id, active)
    return {"ok": True, "userId": user.id, "isActive": user.is_active}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.user, Action.delete, "Administrator role required")),
):
    user_service.delete_user(db, current_user, user_id)
    return {"ok": True, "deletedUserId": user_id}


# --------------------------------------------------
# 4. Stores
# --------------------------------------------------
@router.post("/create-stores", response_model=StoreCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_store(
    payload: StoreCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.store, Action.create, "Administrator role required")),
):
    store = store_service.create_store(db, current_user, payload)
    return StoreCreatedResponse(message="Store created successfully", store=StoreAdminItem.model_validate(store))


@router.get("/stores", response_model=AdminStoreListResponse)
def list_all_stores(
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(get_db),
    current_user: User = Depends(platform_reader),
):
    result = store_query.list_stores(
        db,
        filters=store_query.StoreFilters(name=name, address=address, email=email),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=limit,
        active_only=False,
    )
    return AdminStoreListResponse(
        stores=[StoreAdminItem.model_validate(store) for store, _ in result.rows],
        pagination=result.pagination(),
    )


@router.get("/stores/{store_id}", response_model=StoreDetailAdminResponse)
def get_store_by_id(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(platform_reader)):
    store = store_service.get_store(db, current_user, store_id)
    owner = db.query(User).filter(User.id == store.owner_id).first()
    return StoreDetailAdminResponse(
        store=StoreAdminItem.model_validate(store),
        owner=UserResponse.model_validate(owner) if owner else None,
        ratings=[rating_with_user(r, u) for r, u in store_query.ratings_with_users(db, store.id)],
    )


# --------------------------------------------------
# 5. Platform stats & aggregate repair
# --------------------------------------------------
@router.get("/stats", response_model=StatsResponse)
def dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(platform_reader)):
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_stores = db.query(func.count(Store.id)).scalar() or 0
    total_ratings = db.query(func.count(Rating.id)).scalar() or 0
    return StatsResponse(
        stats=PlatformStats(
            total_users=int(total_users),
            total_stores=int(total_stores),
            total_ratings=int(total_ratings),
        )
    )


@router.post("/recalculate-ratings", response_model=RecalculateResponse)
def recalculate_ratings(
    store_id: Optional[int] = Query(None, alias="storeId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(platform_admin),
):
    if store_id is not None:
        rating_service.recalculate(db, store_id)
        return RecalculateResponse(message="Store rating recalculated", stores_updated=1)

    updated = rating_service.recalculate_all(db)
    return RecalculateResponse(message="Store ratings recalculated", stores_updated=updated)
