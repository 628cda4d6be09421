from enum import Enum


class UserRole(str, Enum):
    administrator = "system_administrator"
    normal_user = "normal_user"
    store_owner = "store_owner"


class StoreSortField(str, Enum):
    name = "name"
    average_rating = "averageRating"
    created_at = "createdAt"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"
