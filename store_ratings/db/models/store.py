# store_ratings/db/models/store.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from store_ratings.db.base import Base
from store_ratings.db.models.common import utcnow


class Store(Base):
    """
    average_rating / total_ratings are a cache of the ratings table.
    Only services.rating_service writes them.
    """
    __tablename__ = "stores"
    __table_args__ = (
        CheckConstraint("length(name) BETWEEN 2 AND 100", name="stores_name_length"),
        CheckConstraint("average_rating >= 0 AND average_rating <= 5", name="stores_average_rating_range"),
        CheckConstraint("total_ratings >= 0", name="stores_total_ratings_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    address = Column(String(400), nullable=False, index=True)
    description = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    average_rating = Column(Float, nullable=False, default=0.0, index=True)
    total_ratings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="stores")
    ratings = relationship("Rating", back_populates="store", cascade="all", passive_deletes=True)
