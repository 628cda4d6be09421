# store_ratings/services/rating_service.py
"""
Rating writes and the store aggregate they maintain.

Every mutation of store_ratings recomputes the owning store's
average_rating / total_ratings from the full table inside the same
transaction, with the store row locked first. The aggregate is never
adjusted incrementally.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from store_ratings.core import policy
from store_ratings.core.exceptions import Conflict, InvalidArgument, NotFound
from store_ratings.core.logger import setup_logger
from store_ratings.core.policy import Action, Resource
from store_ratings.db.models.common import utcnow
from store_ratings.db.models.rating import Rating
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User

logger = setup_logger("store_ratings.ratings")

MIN_RATING = 1
MAX_RATING = 5

DUPLICATE_MESSAGE = "You have already rated this store. Use the update endpoint instead."


def mean_rounded(total: int, count: int) -> float:
    """Mean to one decimal place, halves rounded up (4.25 -> 4.3)."""
    if not count:
        return 0.0
    mean = Decimal(int(total)) / Decimal(int(count))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _validate_value(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidArgument("Rating must be an integer between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidArgument("Rating must be between 1 and 5")
    return rating


def _clean_review(review: Optional[str]) -> Optional[str]:
    if review is None:
        return None
    review = review.strip()
    return review or None


def _find_rating(db: Session, user_id: int, store_id: int) -> Optional[Rating]:
    return (
        db.query(Rating)
        .filter(Rating.user_id == user_id, Rating.store_id == store_id)
        .first()
    )


def _apply_aggregate(db: Session, store: Store) -> Store:
    count, total = (
        db.query(func.count(Rating.id), func.coalesce(func.sum(Rating.rating), 0))
        .filter(Rating.store_id == store.id)
        .one()
    )
    store.average_rating = mean_rounded(total, count)
    store.total_ratings = int(count)
    store.updated_at = utcnow()
    db.add(store)
    return store


def submit_rating(db: Session, principal: User, store_id: int, rating: int, review: Optional[str] = None) -> Rating:
    policy.require(principal, Resource.rating, Action.create, "Only normal users can rate stores")
    _validate_value(rating)

    store = policy.resolve_store(db, principal, store_id, lock=True)
    if not store.is_active:
        raise NotFound("Store not found or inactive")

    if _find_rating(db, principal.id, store.id):
        raise Conflict(DUPLICATE_MESSAGE)

    row = Rating(
        user_id=principal.id,
        store_id=store.id,
        rating=rating,
        review=_clean_review(review),
    )
    db.add(row)
    try:
        db.flush()
    except IntegrityError:
        # lost a race against a concurrent submit for the same pair
        db.rollback()
        raise Conflict(DUPLICATE_MESSAGE)

    _apply_aggregate(db, store)
    db.commit()
    db.refresh(row)

    logger.info("user=%s rated store=%s value=%s (avg=%s, n=%s)",
                principal.id, store.id, rating, store.average_rating, store.total_ratings)
    return row


def update_rating(db: Session, principal: User, store_id: int, rating: int, review: Optional[str] = None) -> Rating:
    policy.require(principal, Resource.rating, Action.update, "Only normal users can rate stores")
    _validate_value(rating)

    store = policy.resolve_store(db, principal, store_id, lock=True)

    row = _find_rating(db, principal.id, store.id)
    if not row:
        raise NotFound("You haven't rated this store yet. Submit a new rating instead.")

    row.rating = rating
    row.review = _clean_review(review)
    row.updated_at = utcnow()
    db.flush()

    _apply_aggregate(db, store)
    db.commit()
    db.refresh(row)

    logger.info("user=%s updated rating on store=%s value=%s (avg=%s, n=%s)",
                principal.id, store.id, rating, store.average_rating, store.total_ratings)
    return row


def delete_rating(db: Session, principal: User, store_id: int) -> None:
    policy.require(principal, Resource.rating, Action.delete, "Only normal users can rate stores")

    store = policy.resolve_store(db, principal, store_id, lock=True)

    row = _find_rating(db, principal.id, store.id)
    if not row:
        raise NotFound("You haven't rated this store yet")

    db.delete(row)
    db.flush()

    _apply_aggregate(db, store)
    db.commit()

    logger.info("user=%s deleted rating on store=%s (avg=%s, n=%s)",
                principal.id, store.id, store.average_rating, store.total_ratings)


def recalculate_in_session(db: Session, store_ids) -> int:
    """Recompute aggregates for existing stores among store_ids without committing."""
    updated = 0
    for store_id in sorted(set(store_ids)):
        store = db.query(Store).filter(Store.id == store_id).with_for_update().first()
        if store is None:
            continue
        _apply_aggregate(db, store)
        updated += 1
    return updated


def recalculate(db: Session, store_id: int) -> Store:
    """Full recompute for one store; idempotent."""
    store = db.query(Store).filter(Store.id == store_id).with_for_update().first()
    if store is None:
        raise NotFound("Store not found")
    _apply_aggregate(db, store)
    db.commit()
    db.refresh(store)
    logger.info("recalculated store=%s (avg=%s, n=%s)", store.id, store.average_rating, store.total_ratings)
    return store


def recalculate_all(db: Session) -> int:
    store_ids = [sid for (sid,) in db.query(Store.id).all()]
    updated = recalculate_in_session(db, store_ids)
    db.commit()
    logger.info("recalculated aggregates for %s stores", updated)
    return updated
