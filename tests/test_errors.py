import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import auth_header
from store_ratings.main import app
from store_ratings.services import rating_service


@pytest.fixture
def lenient_client(client):
    # the client fixture installs the db override; this one returns 500s instead of raising
    return TestClient(app, raise_server_exceptions=False)


def _raiser(exc):
    def _raise(*args, **kwargs):
        raise exc
    return _raise


def test_escaping_integrity_error_is_409(client, monkeypatch, normal_user, make_store):
    store = make_store()
    monkeypatch.setattr(
        rating_service, "submit_rating",
        _raiser(IntegrityError("INSERT INTO store_ratings", {}, Exception("UNIQUE constraint failed"))),
    )
    resp = client.post(f"/api/stores/{store.id}/ratings", headers=auth_header(normal_user), json={"rating": 4})
    assert resp.status_code == 409
    assert resp.json() == {"detail": "Conflict with existing data"}


def test_storage_fault_is_internal(client, monkeypatch, normal_user, make_store):
    store = make_store()
    monkeypatch.setattr(
        rating_service, "submit_rating",
        _raiser(OperationalError("UPDATE stores", {}, Exception("secret db detail"))),
    )
    resp = client.post(f"/api/stores/{store.id}/ratings", headers=auth_header(normal_user), json={"rating": 4})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
    assert "secret" not in resp.text


def test_unexpected_error_is_500_without_details(lenient_client, monkeypatch, normal_user, make_store):
    store = make_store()
    monkeypatch.setattr(rating_service, "submit_rating", _raiser(RuntimeError("secret db detail")))
    resp = lenient_client.post(
        f"/api/stores/{store.id}/ratings", headers=auth_header(normal_user), json={"rating": 4}
    )
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"
    assert "secret" not in resp.text
