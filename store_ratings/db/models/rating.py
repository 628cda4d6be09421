# store_ratings/db/models/rating.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from store_ratings.db.base import Base
from store_ratings.db.models.common import utcnow


class Rating(Base):
    __tablename__ = "store_ratings"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="store_ratings_rating_range"),
        # one rating per user per store, enforced by the database
        UniqueConstraint("user_id", "store_id", name="unique_user_store_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)   # 1..5
    review = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="ratings")
    store = relationship("Store", back_populates="ratings")
