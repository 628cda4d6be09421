from conftest import auth_header
from store_ratings.services import rating_service


def test_owner_store_view(client, owner, make_store):
    store = make_store(owner=owner)
    resp = client.get("/api/store-owner/store", headers=auth_header(owner))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == store.id
    assert data["overallRating"] == 0
    assert data["ratingCount"] == 0


def test_owner_ratings_and_combined_view(client, db, owner, make_user, make_store):
    store = make_store(owner=owner)
    first = make_user(name="First Rater")
    second = make_user(name="Second Rater")
    rating_service.submit_rating(db, first, store.id, 4)
    rating_service.submit_rating(db, second, store.id, 5, "great")

    headers = auth_header(owner)
    ratings = client.get("/api/store-owner/ratings", headers=headers).json()["data"]
    assert [r["user"]["name"] for r in ratings] == ["Second Rater", "First Rater"]
    assert ratings[0]["review"] == "great"

    combined = client.get("/api/store-owner/store-with-ratings", headers=headers).json()["data"]
    assert combined["overallRating"] == 4.5
    assert combined["ratingCount"] == 2
    assert len(combined["ratings"]) == 2


def test_owner_lists_all_owned_stores(client, owner, make_store):
    open_store = make_store(owner=owner)
    closed = make_store(owner=owner, active=False)
    make_store()

    data = client.get("/api/store-owner/stores", headers=auth_header(owner)).json()["data"]
    assert [s["id"] for s in data] == [open_store.id, closed.id]


def test_primary_store_skips_inactive(client, owner, make_store):
    make_store(owner=owner, active=False)
    resp = client.get("/api/store-owner/store", headers=auth_header(owner))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No store found for this owner"


def test_non_owner_rejected(client, normal_user, admin):
    for user in (normal_user, admin):
        resp = client.get("/api/store-owner/store", headers=auth_header(user))
        assert resp.status_code == 403


def test_owner_without_store(client, owner):
    assert client.get("/api/store-owner/ratings", headers=auth_header(owner)).status_code == 404
    assert client.get("/api/store-owner/stores", headers=auth_header(owner)).json()["data"] == []
