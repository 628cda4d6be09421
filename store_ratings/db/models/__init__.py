from .user import User
from .store import Store
from .rating import Rating

__all__ = ["User", "Store", "Rating"]
