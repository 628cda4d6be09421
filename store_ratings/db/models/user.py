# store_ratings/db/models/user.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from store_ratings.db.base import Base
from store_ratings.db.models.common import utcnow


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("length(name) BETWEEN 3 AND 60", name="users_name_length"),
        CheckConstraint("login_attempts >= 0", name="users_login_attempts_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(60), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    address = Column(String(400), nullable=True)
    role = Column(String(32), nullable=False, default="normal_user", server_default="normal_user", index=True)

    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime, nullable=True)
    login_attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # unloaded children are left to ON DELETE CASCADE
    stores = relationship("Store", back_populates="owner", cascade="all", passive_deletes=True)
    ratings = relationship("Rating", back_populates="user", cascade="all", passive_deletes=True)
