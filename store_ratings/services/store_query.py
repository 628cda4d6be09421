# store_ratings/services/store_query.py
"""
Read side for stores: filtered, sorted, paginated listings and single store
views with the requesting user's own rating attached.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import and_, asc, desc
from sqlalchemy.orm import Session

from store_ratings.core import policy
from store_ratings.core.config import settings
from store_ratings.core.exceptions import InvalidArgument
from store_ratings.core.policy import Action, Resource
from store_ratings.db.models.rating import Rating
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.enums import SortOrder, StoreSortField

SORT_COLUMNS = {
    StoreSortField.name: Store.name,
    StoreSortField.average_rating: Store.average_rating,
    StoreSortField.created_at: Store.created_at,
}


@dataclass
class StoreFilters:
    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None


@dataclass
class StorePage:
    rows: List[Tuple[Store, Optional[int]]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    def pagination(self) -> dict:
        return {
            "current_page": self.page,
            "total_pages": self.total_pages,
            "total_items": self.total,
            "items_per_page": self.page_size,
        }


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[StoreSortField, SortOrder]:
    """
    Map raw query values onto the closed set of sort keys.
    Missing field -> name. Unknown field -> createdAt ascending.
    Unknown direction -> ascending.
    """
    if not sort_by:
        sort_field = StoreSortField.name
    else:
        try:
            sort_field = StoreSortField(sort_by)
        except ValueError:
            return StoreSortField.created_at, SortOrder.asc

    try:
        direction = SortOrder((sort_order or "asc").lower())
    except ValueError:
        direction = SortOrder.asc
    return sort_field, direction


def _check_paging(page: int, page_size: int):
    if page < 1:
        raise InvalidArgument("page must be >= 1")
    if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        raise InvalidArgument(f"limit must be between 1 and {settings.MAX_PAGE_SIZE}")


def _like(value: str) -> str:
    return f"%{value.strip()}%"


def list_stores(
    db: Session,
    filters: StoreFilters = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: int = 1,
    page_size: int = None,
    principal: Optional[User] = None,
    active_only: bool = True,
) -> StorePage:
    filters = filters or StoreFilters()
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    _check_paging(page, page_size)

    q = db.query(Store)
    if active_only:
        q = q.filter(Store.is_active.is_(True))
    if filters.name and filters.name.strip():
        q = q.filter(Store.name.ilike(_like(filters.name)))
    if filters.address and filters.address.strip():
        q = q.filter(Store.address.ilike(_like(filters.address)))
    if filters.email and filters.email.strip():
        q = q.filter(Store.email.ilike(_like(filters.email)))

    total = q.count()

    sort_field, direction = resolve_sort(sort_by, sort_order)
    column = SORT_COLUMNS[sort_field]
    primary = desc(column) if direction is SortOrder.desc else asc(column)
    # id breaks ties so pages never overlap or skip rows
    q = q.order_by(primary, asc(Store.id))

    if principal is not None:
        q = q.outerjoin(
            Rating, and_(Rating.store_id == Store.id, Rating.user_id == principal.id)
        ).add_columns(Rating.rating)

    offset = (page - 1) * page_size
    results = q.offset(offset).limit(page_size).all()

    if principal is not None:
        rows = [(store, own) for store, own in results]
    else:
        rows = [(store, None) for store in results]

    return StorePage(rows=rows, total=int(total or 0), page=page, page_size=page_size)


def get_store_with_user_rating(db: Session, principal: User, store_id: int) -> Tuple[Store, Optional[Rating]]:
    store = policy.resolve_store(db, principal, store_id)
    own = (
        db.query(Rating)
        .filter(Rating.store_id == store.id, Rating.user_id == principal.id)
        .first()
    )
    return store, own


def ratings_with_users(db: Session, store_id: int) -> List[Tuple[Rating, Optional[User]]]:
    return (
        db.query(Rating, User)
        .outerjoin(User, Rating.user_id == User.id)
        .filter(Rating.store_id == store_id)
        .order_by(desc(Rating.created_at), desc(Rating.id))
        .all()
    )


def list_store_ratings(db: Session, principal: User, store_id: int) -> List[Tuple[Rating, Optional[User]]]:
    policy.require(principal, Resource.rating, Action.read)
    store = policy.resolve_store(db, principal, store_id)
    return ratings_with_users(db, store.id)
