import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from store_rating.models.rating import Rating, RatingStatus
from store_rating.models.user import UserRole


def find_store(stores, store_id):
    return next(store for store in stores if store["id"] == store_id)

@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"

@pytest.mark.asyncio
async def test_register_and_login(client: AsyncClient):
    response = await client.post("/api/user/register", json={
        "name": "Carol Danvers",
        "email": "carol@example.com",
        "password": "secret@123",
        "address": "12 Elm Road",
    })
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "normal_user"

    response = await client.post("/api/user/login", json={"email": "carol@example.com", "password": "secret@123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "carol@example.com"

    response = await client.post("/api/user/login", json={"email": "carol@example.com", "password": "wrong@123"})
    assert response.status_code == 401

@pytest.mark.asyncio
async def test_register_rejects_weak_password_and_duplicate_email(client: AsyncClient, factory):
    await factory.user("Alice Walker")

    response = await client.post("/api/user/register", json={
        "name": "Weak Password",
        "email": "weak@example.com",
        "password": "password",
    })
    assert response.status_code == 400
    assert "message" in response.json()

    response = await client.post("/api/user/register", json={
        "name": "Alice Again",
        "email": "alice.walker@example.com",
        "password": "secret@123",
    })
    assert response.status_code == 409
    assert response.json() == {"message": "Email already exists"}

@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, factory, auth_header):
    user = await factory.user("Alice Walker")
    headers = auth_header(user)

    response = await client.post("/api/user/change-password", headers=headers, json={
        "oldPassword": "nope@1234",
        "newPassword": "fresh@1234",
        "confirmPassword": "fresh@1234",
    })
    assert response.status_code == 400

    response = await client.post("/api/user/change-password", headers=headers, json={
        "oldPassword": "secret@123",
        "newPassword": "fresh@1234",
        "confirmPassword": "fresh@1234",
    })
    assert response.status_code == 200

    response = await client.post("/api/user/login", json={"email": user.email, "password": "fresh@1234"})
    assert response.status_code == 200

@pytest.mark.asyncio
async def test_missing_token_is_401_and_bad_token_is_403(client: AsyncClient):
    response = await client.get("/api/user/stores")
    assert response.status_code == 401
    assert response.json() == {"message": "Access denied. No token provided."}

    response = await client.get("/api/user/stores", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 403

@pytest.mark.asyncio
async def test_role_checks(client: AsyncClient, factory, auth_header):
    user = await factory.user("Alice Walker")
    owner = await factory.user("Store Owner", UserRole.store_owner)

    assert (await client.get("/api/admin/users", headers=auth_header(user))).status_code == 403
    assert (await client.get("/api/admin/users", headers=auth_header(owner))).status_code == 403
    assert (await client.get("/api/owner/stores", headers=auth_header(user))).status_code == 403

@pytest.mark.asyncio
async def test_rating_flow_updates_average(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    bob = await factory.user("Bob Stone")
    store = await factory.store(owner, "Corner Bakery")

    response = await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json={"score": 4, "text": "ok"})
    assert response.status_code == 201
    rating_id = response.json()["rating"]["rating_id"]

    response = await client.get("/api/user/stores", headers=auth_header(alice))
    listed = find_store(response.json()["stores"], store.id)
    assert listed["average_rating"] == 4
    assert listed["user_rating"] == 4
    assert listed["user_rating_id"] == rating_id

    response = await client.post(f"/api/user/rate/{store.id}", headers=auth_header(bob), json={"score": 2})
    assert response.status_code == 201

    response = await client.get("/api/user/stores", headers=auth_header(bob))
    listed = find_store(response.json()["stores"], store.id)
    assert listed["average_rating"] == 3.0
    assert listed["user_rating"] == 2

    response = await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json={"score": 1})
    assert response.status_code == 409

    response = await client.put(f"/api/user/edit/rating/{rating_id}", headers=auth_header(alice), json={"score": 5})
    assert response.status_code == 200
    assert response.json()["rating"]["text"] == "ok"

    response = await client.get(f"/api/user/stores/{store.id}", headers=auth_header(alice))
    assert response.json()["store"]["average_rating"] == 3.5
    assert response.json()["store"]["owner_name"] == "Store Owner"

@pytest.mark.asyncio
async def test_user_without_rating_sees_null_user_rating(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    store = await factory.store(owner, "Corner Bakery")

    response = await client.get("/api/user/stores", headers=auth_header(alice))
    listed = find_store(response.json()["stores"], store.id)
    assert listed["average_rating"] == 0
    assert listed["user_rating"] is None
    assert listed["user_rating_id"] is None

@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"score": 0}, {"score": 6}, {"score": "4"}, {"score": 4.5}, {"text": "no score"}])
async def test_submit_rejects_bad_score(client: AsyncClient, factory, auth_header, payload):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    store = await factory.store(owner, "Corner Bakery")

    response = await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json=payload)
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_rate_with_invalid_store_id(client: AsyncClient, factory, auth_header):
    alice = await factory.user("Alice Walker")

    response = await client.post("/api/user/rate/abc", headers=auth_header(alice), json={"score": 3})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid store ID provided."}

    response = await client.post("/api/user/rate/999", headers=auth_header(alice), json={"score": 3})
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_edit_rules(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    bob = await factory.user("Bob Stone")
    store = await factory.store(owner, "Corner Bakery")
    response = await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json={"score": 4})
    rating_id = response.json()["rating"]["rating_id"]
    url = f"/api/user/edit/rating/{rating_id}"

    assert (await client.put(url, headers=auth_header(alice), json={})).status_code == 400
    assert (await client.put(url, headers=auth_header(alice), json={"score": 7})).status_code == 400
    assert (await client.put(url, headers=auth_header(alice), json={"score": None})).status_code == 400
    assert (await client.put(url, headers=auth_header(bob), json={"score": 1})).status_code == 404

    response = await client.put(url, headers=auth_header(alice), json={"text": "better now"})
    assert response.status_code == 200
    assert response.json()["rating"]["score"] == 4
    assert response.json()["rating"]["text"] == "better now"

    response = await client.get(f"/api/user/rating/{rating_id}", headers=auth_header(alice))
    assert response.json()["rating"]["text"] == "better now"
    assert (await client.get(f"/api/user/rating/{rating_id}", headers=auth_header(bob))).status_code == 404

@pytest.mark.asyncio
async def test_pending_ratings_are_ignored(client: AsyncClient, async_session: AsyncSession, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    bob = await factory.user("Bob Stone")
    admin = await factory.user("Site Admin", UserRole.admin)
    store = await factory.store(owner, "Corner Bakery")

    await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json={"score": 5})
    async_session.add(Rating(store_id=store.id, user_id=bob.id, score=1, status=RatingStatus.pending))
    await async_session.commit()

    response = await client.get("/api/user/stores", headers=auth_header(bob))
    listed = find_store(response.json()["stores"], store.id)
    assert listed["average_rating"] == 5
    assert listed["user_rating"] is None

    response = await client.get("/api/user/ratings", headers=auth_header(bob))
    assert response.json()["ratings"] == []
    assert response.json()["pagination"]["totalRatings"] == 0

    response = await client.get("/api/admin/ratings?status=pending", headers=auth_header(admin))
    ratings = response.json()["ratings"]
    assert [rating["user_id"] for rating in ratings] == [bob.id]

    response = await client.get("/api/admin/dashboard", headers=auth_header(admin))
    assert response.json()["dashboardData"] == {"totalUsers": 4, "totalStores": 1, "totalRatings": 2}

@pytest.mark.asyncio
async def test_admin_store_listing_sorted_by_average(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    admin = await factory.user("Site Admin", UserRole.admin)
    alice = await factory.user("Alice Walker")
    high = await factory.store(owner, "High Street Deli")
    low = await factory.store(owner, "Low Road Diner")
    unrated = await factory.store(owner, "Unrated Cafe")

    await client.post(f"/api/user/rate/{high.id}", headers=auth_header(alice), json={"score": 5})
    await client.post(f"/api/user/rate/{low.id}", headers=auth_header(alice), json={"score": 2})

    response = await client.get(
        "/api/admin/stores?sort=average_rating&order=asc", headers=auth_header(admin)
    )
    assert response.status_code == 200
    data = response.json()
    assert [store["id"] for store in data["stores"]] == [unrated.id, low.id, high.id]
    assert [store["average_rating"] for store in data["stores"]] == [0, 2, 5]
    assert data["pagination"]["totalStores"] == 3

    response = await client.get(
        "/api/admin/stores?sort=average_rating&order=desc&limit=2&page=2", headers=auth_header(admin)
    )
    data = response.json()
    assert [store["id"] for store in data["stores"]] == [unrated.id]
    assert data["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalStores": 3,
        "hasNext": False,
        "hasPrev": True,
    }

@pytest.mark.asyncio
async def test_admin_filter_strictness(client: AsyncClient, factory, auth_header):
    admin = await factory.user("Site Admin", UserRole.admin)
    await factory.user("Alice Walker")
    headers = auth_header(admin)

    response = await client.get("/api/admin/users?role=bogus", headers=headers)
    assert response.status_code == 200
    assert response.json()["pagination"]["totalUsers"] == 2

    response = await client.get("/api/admin/users?role=admin", headers=headers)
    assert [user["id"] for user in response.json()["users"]] == [admin.id]

    response = await client.get("/api/admin/users?name=WALK", headers=headers)
    assert [user["name"] for user in response.json()["users"]] == ["Alice Walker"]

    response = await client.get("/api/admin/ratings?status=bogus", headers=headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid status filter value."}

    response = await client.get("/api/admin/ratings?score=9", headers=headers)
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_admin_creates_user_and_store(client: AsyncClient, factory, auth_header):
    admin = await factory.user("Site Admin", UserRole.admin)
    headers = auth_header(admin)

    response = await client.post("/api/admin/create/user", headers=headers, json={
        "name": "New Owner",
        "email": "new.owner@example.com",
        "password": "owner@123",
        "role": "store_owner",
    })
    assert response.status_code == 201
    owner_id = response.json()["user"]["id"]

    response = await client.post("/api/admin/create/store", headers=headers, json={
        "name": "Fresh Market",
        "address": "5 Harbour Lane",
        "email": "fresh@example.com",
        "owner_id": owner_id,
    })
    assert response.status_code == 201

    response = await client.post("/api/admin/create/store", headers=headers, json={
        "name": "Not An Owner",
        "address": "6 Harbour Lane",
        "owner_id": admin.id,
    })
    assert response.status_code == 400

    response = await client.get(f"/api/admin/users/{owner_id}", headers=headers)
    assert response.json()["user"]["store_rating"] == 0

@pytest.mark.asyncio
async def test_search(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    admin = await factory.user("Site Admin", UserRole.admin)
    await factory.store(owner, "Corner Bakery")
    await factory.store(owner, "Hardware Depot")

    response = await client.get("/api/admin/search/stores?q=bakery", headers=auth_header(admin))
    data = response.json()
    assert data["searchType"] == "simple_ilike"
    assert [store["name"] for store in data["results"]] == ["Corner Bakery"]
    assert data["count"] == 1

    response = await client.get("/api/admin/search/users?q=owner", headers=auth_header(admin))
    assert response.json()["count"] == 1

    response = await client.get("/api/admin/search/stores?q=%20", headers=auth_header(admin))
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_owner_views_only_own_stores(client: AsyncClient, factory, auth_header):
    owner = await factory.user("Store Owner", UserRole.store_owner)
    rival = await factory.user("Rival Owner", UserRole.store_owner)
    alice = await factory.user("Alice Walker")
    store = await factory.store(owner, "Corner Bakery")
    other = await factory.store(rival, "Rival Bakery")

    await client.post(f"/api/user/rate/{store.id}", headers=auth_header(alice), json={"score": 3, "text": "fine"})
    await client.post(f"/api/user/rate/{other.id}", headers=auth_header(alice), json={"score": 1})

    response = await client.get("/api/owner/stores", headers=auth_header(owner))
    stores = response.json()["stores"]
    assert [s["id"] for s in stores] == [store.id]
    assert stores[0]["total_ratings_count"] == 1
    assert stores[0]["recent_ratings"][0]["user_email"] == alice.email

    response = await client.get("/api/owner/dashboard/ratings", headers=auth_header(owner))
    ratings = response.json()["ratings"]
    assert [r["store_id"] for r in ratings] == [store.id]
    assert ratings[0]["user_email"] == alice.email

    response = await client.get(f"/api/owner/store/{store.id}", headers=auth_header(owner))
    data = response.json()
    assert data["metrics"] == {"average_rating": 3.0, "total_ratings_count": 1}
    assert len(data["ratings"]) == 1

    response = await client.get(f"/api/owner/store/{other.id}", headers=auth_header(owner))
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_oversized_ids_are_rejected(client: AsyncClient, factory, auth_header):
    admin = await factory.user("Site Admin", UserRole.admin)
    headers = auth_header(admin)
    huge = 10**30

    response = await client.get(f"/api/user/stores/{huge}", headers=headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid store ID provided."}

    response = await client.get(f"/api/admin/users?page={huge}&limit={huge}", headers=headers)
    assert response.status_code == 200
    assert response.json()["pagination"]["currentPage"] == 1

    response = await client.get(f"/api/admin/ratings?store_id={huge}", headers=headers)
    assert response.status_code == 400

    response = await client.get(f"/api/admin/stores?owner_id={huge}", headers=headers)
    assert response.status_code == 200

@pytest.mark.asyncio
async def test_admin_ratings_rejects_empty_score(client: AsyncClient, factory, auth_header):
    admin = await factory.user("Site Admin", UserRole.admin)

    response = await client.get("/api/admin/ratings?score=", headers=auth_header(admin))
    assert response.status_code == 400
    assert response.json() == {"message": "Score filter must be an integer between 1 and 5."}
