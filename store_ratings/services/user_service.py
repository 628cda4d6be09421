# store_ratings/services/user_service.py
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from store_ratings.core.exceptions import Conflict, InvalidArgument, NotFound
from store_ratings.core.logger import setup_logger
from store_ratings.core.security import hash_password
from store_ratings.db.models.rating import Rating
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.enums import UserRole
from store_ratings.schemas.user import UserCreate
from store_ratings.services import rating_service

logger = setup_logger("store_ratings.users")


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def create_user(db: Session, payload: UserCreate, role: UserRole = UserRole.normal_user, verified: bool = False) -> User:
    if get_by_email(db, payload.email):
        raise Conflict("User with this email already exists")

    user = User(
        name=payload.name.strip(),
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        address=payload.address,
        role=role.value,
        is_active=True,
        email_verified=verified,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User with this email already exists")
    db.refresh(user)

    logger.info("created user id=%s role=%s", user.id, user.role)
    return user


def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    address: Optional[str] = None,
) -> List[User]:
    q = db.query(User)
    if role:
        q = q.filter(User.role == role.value)
    if name:
        q = q.filter(User.name.ilike(f"%{name.strip()}%"))
    if email:
        q = q.filter(User.email.ilike(f"%{email.strip()}%"))
    if address:
        q = q.filter(User.address.ilike(f"%{address.strip()}%"))
    return q.order_by(User.name, User.id).all()


def owned_stores(db: Session, user_id: int) -> List[Store]:
    return db.query(Store).filter(Store.owner_id == user_id).order_by(Store.created_at, Store.id).all()


def _not_self(acting_user: User, user_id: int, message: str):
    if acting_user.id == user_id:
        raise InvalidArgument(message)


def change_role(db: Session, acting_user: User, user_id: int, role: UserRole) -> User:
    _not_self(acting_user, user_id, "Administrators cannot change their own role")
    user = get_user(db, user_id)
    if user.role == role.value:
        return user

    if user.role == UserRole.store_owner.value and role is not UserRole.store_owner:
        if db.query(func.count(Store.id)).filter(Store.owner_id == user.id).scalar():
            raise Conflict("User still owns stores; reassign or remove them before changing the role")

    previous = user.role
    user.role = role.value
    db.commit()
    db.refresh(user)

    logger.info("changed role of user id=%s from %s to %s", user.id, previous, user.role)
    return user


def set_active(db: Session, acting_user: User, user_id: int, active: bool) -> User:
    _not_self(acting_user, user_id, "Administrators cannot change their own active status")
    user = get_user(db, user_id)
    user.is_active = bool(active)
    db.commit()
    db.refresh(user)
    logger.info("user id=%s is_active=%s", user.id, user.is_active)
    return user


def delete_user(db: Session, acting_user: User, user_id: int) -> None:
    """
    Hard delete. Owned stores and authored ratings go with the user through
    ON DELETE CASCADE; aggregates of the surviving stores the user rated are
    recomputed before commit.
    """
    _not_self(acting_user, user_id, "Administrators cannot delete their own account")

    user = get_user(db, user_id)
    rated_store_ids = [
        sid for (sid,) in
        db.query(Rating.store_id)
        .join(Store, Store.id == Rating.store_id)
        .filter(Rating.user_id == user.id, Store.owner_id != user.id)
        .all()
    ]

    db.delete(user)
    db.flush()
    # cascaded rows are gone in the database but may linger in the identity map
    db.expire_all()

    rating_service.recalculate_in_session(db, rated_store_ids)
    db.commit()

    logger.info("deleted user id=%s, recomputed %s store aggregates", user_id, len(rated_store_ids))
