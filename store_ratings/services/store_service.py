# store_ratings/services/store_service.py
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from store_ratings.core import policy
from store_ratings.core.exceptions import Conflict, Forbidden, InvalidArgument, NotFound
from store_ratings.core.logger import setup_logger
from store_ratings.core.policy import Action, Resource
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.enums import UserRole
from store_ratings.schemas.store import StoreCreate, StoreUpdate

logger = setup_logger("store_ratings.stores")


def _store_owner(db: Session, owner_id: int) -> User:
    owner = db.query(User).filter(User.id == owner_id).first()
    if not owner:
        raise NotFound("Store owner not found")
    if owner.role != UserRole.store_owner.value:
        raise InvalidArgument(
            "The specified user is not a store owner. Please assign the store owner role first."
        )
    return owner


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Store.id).filter(func.lower(Store.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(Store.id != exclude_id)
    return q.first() is not None


def create_store(db: Session, principal: User, payload: StoreCreate) -> Store:
    policy.require(principal, Resource.store, Action.create)
    _store_owner(db, payload.owner_id)

    if _email_taken(db, payload.email):
        raise Conflict("Store with this email already exists")

    store = Store(
        name=payload.name.strip(),
        email=payload.email.lower(),
        address=payload.address.strip(),
        description=payload.description,
        phone=payload.phone,
        owner_id=payload.owner_id,
        is_active=True,
        average_rating=0.0,
        total_ratings=0,
    )
    db.add(store)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Store with this email already exists")
    db.refresh(store)

    logger.info("created store id=%s owner=%s by user=%s", store.id, store.owner_id, principal.id)
    return store


def update_store(db: Session, principal: User, store_id: int, payload: StoreUpdate) -> Store:
    store = policy.resolve_store(db, principal, store_id, Action.update)
    data = payload.model_dump(exclude_unset=True)

    if "owner_id" in data:
        new_owner = data.pop("owner_id")
        if new_owner is not None and new_owner != store.owner_id:
            if not policy.can(principal, Resource.store, Action.assign_owner):
                raise Forbidden("Only administrators can reassign store ownership")
            _store_owner(db, new_owner)
            store.owner_id = new_owner

    # owners may deactivate their store but only administrators bring it back
    if data.get("is_active") and not store.is_active:
        if not policy.can(principal, Resource.store, Action.activate):
            raise Forbidden("Only administrators can reactivate a store")

    if data.get("email") and _email_taken(db, data["email"], exclude_id=store.id):
        raise Conflict("Store with this email already exists")

    for field, value in data.items():
        if field in ("name", "email", "address") and value is None:
            raise InvalidArgument(f"{field} cannot be empty")
        if field == "email":
            value = value.lower()
        setattr(store, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Store with this email already exists")
    db.refresh(store)

    logger.info("store id=%s updated by user=%s fields=%s", store.id, principal.id, sorted(data))
    return store


def deactivate_store(db: Session, principal: User, store_id: int) -> Store:
    store = policy.resolve_store(db, principal, store_id, Action.delete)
    store.is_active = False
    db.commit()
    db.refresh(store)
    logger.info("store id=%s deactivated by user=%s", store.id, principal.id)
    return store


def get_store(db: Session, principal: User, store_id: int) -> Store:
    return policy.resolve_store(db, principal, store_id)


def stores_for_owner(db: Session, principal: User, active_only: bool = False) -> List[Store]:
    policy.require(principal, Resource.owner_dashboard, Action.read, "Access denied. Store owner role required.")
    q = db.query(Store).filter(Store.owner_id == principal.id)
    if active_only:
        q = q.filter(Store.is_active.is_(True))
    return q.order_by(Store.created_at, Store.id).all()


def primary_store_for_owner(db: Session, principal: User) -> Store:
    stores = stores_for_owner(db, principal, active_only=True)
    if not stores:
        raise NotFound("No store found for this owner")
    return stores[0]
