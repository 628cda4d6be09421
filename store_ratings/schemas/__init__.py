from .enums import UserRole, StoreSortField, SortOrder
from .base import CamelModel

__all__ = ["UserRole", "StoreSortField", "SortOrder", "CamelModel"]
