# store_ratings/core/policy.py
"""
Role based access rules for stores, ratings and user management.

Every permission lives in POLICY as (role, resource, action) -> scope.
Routes and services ask this module instead of comparing roles themselves.

A store the principal may not read is reported as NotFound, never Forbidden,
so a denied lookup does not reveal that the row exists.
"""
from enum import Enum

from sqlalchemy import false, or_, true
from sqlalchemy.orm import Session

from store_ratings.core.exceptions import Forbidden, NotFound
from store_ratings.db.models.store import Store
from store_ratings.db.models.user import User
from store_ratings.schemas.enums import UserRole


class Scope(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    ACTIVE_OR_OWN = "active_or_own"
    OWN = "own"
    NONE = "none"


class Resource(str, Enum):
    store = "store"
    rating = "rating"
    user = "user"
    # admin-only endpoints: stats, aggregate repair
    platform = "platform"
    # the store owner's dashboard views
    owner_dashboard = "owner_dashboard"


class Action(str, Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"
    assign_owner = "assign_owner"
    # turning a deactivated store back on
    activate = "activate"


POLICY = {
    UserRole.normal_user: {
        Resource.store: {Action.read: Scope.ACTIVE},
        Resource.rating: {
            Action.read: Scope.ALL,
            Action.create: Scope.OWN,
            Action.update: Scope.OWN,
            Action.delete: Scope.OWN,
        },
    },
    UserRole.store_owner: {
        Resource.store: {
            Action.read: Scope.ACTIVE_OR_OWN,
            Action.update: Scope.OWN,
            Action.delete: Scope.OWN,
        },
        Resource.rating: {Action.read: Scope.ALL},
        Resource.owner_dashboard: {Action.read: Scope.OWN},
    },
    UserRole.administrator: {
        Resource.store: {
            Action.read: Scope.ALL,
            Action.create: Scope.ALL,
            Action.update: Scope.ALL,
            Action.delete: Scope.ALL,
            Action.assign_owner: Scope.ALL,
            Action.activate: Scope.ALL,
        },
        Resource.rating: {Action.read: Scope.ALL},
        Resource.user: {
            Action.read: Scope.ALL,
            Action.create: Scope.ALL,
            Action.update: Scope.ALL,
            Action.delete: Scope.ALL,
        },
        Resource.platform: {Action.read: Scope.ALL, Action.update: Scope.ALL},
    },
}


def _role(principal: User) -> UserRole | None:
    try:
        return UserRole(principal.role)
    except ValueError:
        return None


def scope_for(principal: User, resource: Resource, action: Action) -> Scope:
    role = _role(principal)
    if role is None:
        return Scope.NONE
    return POLICY.get(role, {}).get(resource, {}).get(action, Scope.NONE)


def can(principal: User, resource: Resource, action: Action) -> bool:
    return scope_for(principal, resource, action) is not Scope.NONE


def require(principal: User, resource: Resource, action: Action, message: str = None) -> Scope:
    """Role-level check. Raises Forbidden when the role has no scope at all."""
    scope = scope_for(principal, resource, action)
    if scope is Scope.NONE:
        raise Forbidden(message or "Insufficient permissions")
    return scope


def store_in_scope(scope: Scope, principal: User, store: Store) -> bool:
    if scope is Scope.ALL:
        return True
    if scope is Scope.ACTIVE:
        return bool(store.is_active)
    if scope is Scope.ACTIVE_OR_OWN:
        return bool(store.is_active) or store.owner_id == principal.id
    if scope is Scope.OWN:
        return store.owner_id == principal.id
    return False


def store_scope_criterion(scope: Scope, principal: User):
    """SQL equivalent of store_in_scope, for listings and lookups."""
    if scope is Scope.ALL:
        return true()
    if scope is Scope.ACTIVE:
        return Store.is_active.is_(True)
    if scope is Scope.ACTIVE_OR_OWN:
        return or_(Store.is_active.is_(True), Store.owner_id == principal.id)
    if scope is Scope.OWN:
        return Store.owner_id == principal.id
    return false()


def visible_stores(principal: User):
    return store_scope_criterion(scope_for(principal, Resource.store, Action.read), principal)


def resolve_store(
    db: Session,
    principal: User,
    store_id: int,
    action: Action = Action.read,
    lock: bool = False,
) -> Store:
    """
    Load a store for `action`.
    Unreadable (or missing) -> NotFound. Readable but not writable -> Forbidden.
    With lock=True the row is selected FOR UPDATE so writers to the same
    store serialize on it until commit.
    """
    q = db.query(Store).filter(Store.id == store_id, visible_stores(principal))
    if lock:
        q = q.with_for_update()
    store = q.first()
    if store is None:
        raise NotFound("Store not found")

    if action is not Action.read:
        scope = scope_for(principal, Resource.store, action)
        if not store_in_scope(scope, principal, store):
            raise Forbidden("You are not allowed to modify this store")
    return store
