import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from store_ratings.core.security import create_access_token, hash_password
from store_ratings.db.base import Base, build_engine, get_db
from store_ratings.db.models import Rating, Store, User
from store_ratings.main import app
from store_ratings.schemas.enums import UserRole

PASSWORD = "Password1!"

_seq = itertools.count(1)


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def client(session_factory):
    def override_get_db():
        with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role=UserRole.normal_user, name=None, email=None, active=True, password=PASSWORD):
        n = next(_seq)
        user = User(
            name=name or f"Test User {n}",
            email=email or f"user{n}@example.com",
            password_hash=hash_password(password),
            address="1 Test Street",
            role=role.value,
            is_active=active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_store(db, make_user):
    def _make(owner=None, name=None, address="42 Market Road", active=True):
        owner = owner or make_user(UserRole.store_owner)
        n = next(_seq)
        store = Store(
            name=name or f"Store {n}",
            email=f"store{n}@example.com",
            address=address,
            owner_id=owner.id,
            is_active=active,
        )
        db.add(store)
        db.commit()
        db.refresh(store)
        return store
    return _make


@pytest.fixture
def normal_user(make_user):
    return make_user(UserRole.normal_user)


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.store_owner)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.administrator)


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def ratings_for(db, store_id):
    return [r.rating for r in db.query(Rating).filter(Rating.store_id == store_id).all()]
