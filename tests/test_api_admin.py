import pytest

from conftest import auth_header, ratings_for
from store_ratings.db.models import Rating, Store, User
from store_ratings.schemas.enums import UserRole
from store_ratings.services import rating_service


def new_user_body(email, name="Created Person"):
    return {"name": name, "email": email, "password": "Secret123!", "address": "9 Admin Avenue"}


@pytest.mark.parametrize("path,role", [
    ("normal", "normal_user"),
    ("admin", "system_administrator"),
    ("store-owner", "store_owner"),
])
def test_admin_creates_users_per_role(client, admin, path, role):
    resp = client.post(f"/api/admin/users/{path}", headers=auth_header(admin), json=new_user_body(f"{path}@example.com"))
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["role"] == role
    assert user["emailVerified"] is True


def test_admin_create_user_duplicate(client, admin, normal_user):
    resp = client.post("/api/admin/users/normal", headers=auth_header(admin), json=new_user_body(normal_user.email))
    assert resp.status_code == 409


@pytest.mark.parametrize("fixture", ["normal_user", "owner"])
def test_admin_routes_reject_other_roles(client, request, fixture):
    user = request.getfixturevalue(fixture)
    headers = auth_header(user)
    assert client.get("/api/admin/users", headers=headers).status_code == 403
    assert client.get("/api/admin/stats", headers=headers).status_code == 403
    assert client.post("/api/admin/recalculate-ratings", headers=headers).status_code == 403
    body = {"name": "Sneaky", "email": "sneaky@example.com", "address": "1 Side Street", "ownerId": user.id}
    assert client.post("/api/admin/create-stores", headers=headers, json=body).status_code == 403


def test_list_users_filters(client, admin, make_user):
    make_user(name="Alice Walker")
    make_user(UserRole.store_owner, name="Alan Owner")
    make_user(name="Bob Stone")

    headers = auth_header(admin)
    by_name = client.get("/api/admin/users", headers=headers, params={"name": "al"}).json()["users"]
    assert [u["name"] for u in by_name] == ["Alan Owner", "Alice Walker"]

    owners = client.get("/api/admin/users", headers=headers, params={"role": "store_owner", "name": "al"}).json()["users"]
    assert [u["name"] for u in owners] == ["Alan Owner"]

    listed = client.get("/api/admin/users/store-owners", headers=headers).json()["users"]
    assert all(u["role"] == "store_owner" for u in listed)


def test_user_detail_lists_owned_stores(client, admin, owner, make_store):
    store = make_store(owner=owner)
    resp = client.get(f"/api/admin/users/{owner.id}", headers=auth_header(admin))
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["stores"]] == [store.id]

    assert client.get("/api/admin/users/99999", headers=auth_header(admin)).status_code == 404


def test_role_change(client, admin, normal_user, owner, make_store):
    headers = auth_header(admin)
    resp = client.patch(f"/api/admin/users/{normal_user.id}/role", headers=headers, json={"role": "store_owner"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "store_owner"

    make_store(owner=owner)
    blocked = client.patch(f"/api/admin/users/{owner.id}/role", headers=headers, json={"role": "normal_user"})
    assert blocked.status_code == 409

    invalid = client.patch(f"/api/admin/users/{normal_user.id}/role", headers=headers, json={"role": "superuser"})
    assert invalid.status_code == 400


def test_deactivate_user_blocks_login(client, admin, normal_user):
    resp = client.put(f"/api/admin/users/{normal_user.id}/activate", headers=auth_header(admin), params={"active": False})
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False
    assert client.get("/api/auth/profile", headers=auth_header(normal_user)).status_code == 401


def test_delete_user_repairs_aggregates(client, db, admin, make_user, make_store):
    store = make_store()
    leaving = make_user()
    staying = make_user()
    rating_service.submit_rating(db, leaving, store.id, 1)
    rating_service.submit_rating(db, staying, store.id, 5)
    leaving_id, store_id = leaving.id, store.id

    resp = client.delete(f"/api/admin/users/{leaving_id}", headers=auth_header(admin))
    assert resp.status_code == 200
    assert resp.json()["deletedUserId"] == leaving_id

    db.expire_all()
    assert db.get(User, leaving_id) is None
    assert ratings_for(db, store_id) == [5]
    refreshed = db.get(Store, store_id)
    assert (refreshed.average_rating, refreshed.total_ratings) == (5.0, 1)


def test_delete_owner_cascades_to_stores(client, db, admin, owner, normal_user, make_store):
    store = make_store(owner=owner)
    rating_service.submit_rating(db, normal_user, store.id, 4)
    store_id = store.id

    assert client.delete(f"/api/admin/users/{owner.id}", headers=auth_header(admin)).status_code == 200

    db.expire_all()
    assert db.get(Store, store_id) is None
    assert db.query(Rating).count() == 0


def test_admin_cannot_delete_self(client, admin):
    assert client.delete(f"/api/admin/users/{admin.id}", headers=auth_header(admin)).status_code == 400


def test_create_store(client, admin, owner, normal_user):
    headers = auth_header(admin)
    body = {"name": "Corner Shop", "email": "corner@example.com", "address": "5 Corner Lane", "ownerId": owner.id}

    resp = client.post("/api/admin/create-stores", headers=headers, json=body)
    assert resp.status_code == 201
    store = resp.json()["store"]
    assert store["ownerId"] == owner.id
    assert store["averageRating"] == 0
    assert store["totalRatings"] == 0
    assert store["isActive"] is True

    assert client.post("/api/admin/create-stores", headers=headers, json=body).status_code == 409

    not_owner = dict(body, email="other@example.com", ownerId=normal_user.id)
    assert client.post("/api/admin/create-stores", headers=headers, json=not_owner).status_code == 400

    missing = dict(body, email="third@example.com", ownerId=99999)
    assert client.post("/api/admin/create-stores", headers=headers, json=missing).status_code == 404


def test_admin_reassigns_owner(client, admin, make_user, make_store):
    store = make_store()
    new_owner = make_user(UserRole.store_owner)
    resp = client.patch(f"/api/stores/{store.id}", headers=auth_header(admin), json={"ownerId": new_owner.id})
    assert resp.status_code == 200
    assert resp.json()["ownerId"] == new_owner.id


def test_admin_store_listing_includes_inactive(client, admin, make_store):
    active = make_store(name="Open Shop")
    hidden = make_store(name="Closed Shop", active=False)

    resp = client.get("/api/admin/stores", headers=auth_header(admin), params={"sortBy": "name"})
    assert resp.status_code == 200
    stores = resp.json()["stores"]
    assert [s["id"] for s in stores] == [hidden.id, active.id]
    assert stores[0]["isActive"] is False

    detail = client.get(f"/api/admin/stores/{hidden.id}", headers=auth_header(admin))
    assert detail.status_code == 200
    assert detail.json()["owner"]["id"] == hidden.owner_id


def test_stats(client, admin, normal_user, make_store):
    store = make_store()
    client.post(f"/api/stores/{store.id}/ratings", headers=auth_header(normal_user), json={"rating": 4})

    stats = client.get("/api/admin/stats", headers=auth_header(admin)).json()["stats"]
    # admin, normal_user and the store's owner
    assert stats == {"totalUsers": 3, "totalStores": 1, "totalRatings": 1}


def test_recalculate_ratings_endpoint(client, db, admin, make_user, make_store):
    store = make_store()
    for value in (2, 3):
        rating_service.submit_rating(db, make_user(), store.id, value)
    db.get(Store, store.id).average_rating = 0.0
    db.commit()

    headers = auth_header(admin)
    one = client.post("/api/admin/recalculate-ratings", headers=headers, params={"storeId": store.id})
    assert one.status_code == 200
    assert one.json()["storesUpdated"] == 1

    db.expire_all()
    assert db.get(Store, store.id).average_rating == 2.5

    everything = client.post("/api/admin/recalculate-ratings", headers=headers)
    assert everything.json()["storesUpdated"] == 1

    missing = client.post("/api/admin/recalculate-ratings", headers=headers, params={"storeId": 99999})
    assert missing.status_code == 404


def test_admin_cannot_demote_or_deactivate_self(client, db, admin):
    headers = auth_header(admin)
    role = client.patch(f"/api/admin/users/{admin.id}/role", headers=headers, json={"role": "normal_user"})
    assert role.status_code == 400

    active = client.put(f"/api/admin/users/{admin.id}/activate", headers=headers, params={"active": False})
    assert active.status_code == 400

    db.refresh(admin)
    assert admin.role == UserRole.administrator.value
    assert admin.is_active is True
    assert client.get("/api/admin/stats", headers=headers).status_code == 200
