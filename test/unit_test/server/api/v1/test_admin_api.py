import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
def admin(auth_state):
    return auth_state.login("admin-1", role="admin")


async def test_admin_endpoints_reject_users(client: AsyncClient, auth_state):
    auth_state.login()
    assert (await client.get("/api/v1/admin/users")).status_code == 403
    assert (await client.get("/api/v1/admin/analytics/summary")).status_code == 403


async def test_list_users(client: AsyncClient, admin, make_profile, grant):
    await make_profile("user-1", email="mari@example.com")
    await grant("user-1", "static")

    users = (await client.get("/api/v1/admin/users")).json()

    assert [u["id"] for u in users] == ["user-1"]
    assert users[0]["entitlements"][0]["product"] == "static"


async def test_set_entitlement(client: AsyncClient, admin, make_profile):
    await make_profile("user-1")

    response = await client.post(
        "/api/v1/admin/users/user-1/entitlements", json={"product": "pt", "status": "active", "note": "kink"}
    )

    assert response.status_code == 200
    assert (response.json()["product"], response.json()["source"]) == ("pt", "admin")


async def test_set_entitlement_validates_product(client: AsyncClient, admin, make_profile):
    await make_profile("user-1")
    response = await client.post("/api/v1/admin/users/user-1/entitlements", json={"product": "yoga"})
    assert response.status_code == 422


async def test_set_entitlement_for_unknown_user(client: AsyncClient, admin):
    response = await client.post("/api/v1/admin/users/ghost/entitlements", json={"product": "pt"})
    assert response.status_code == 404


async def test_analytics_summary(client: AsyncClient, admin, make_profile, grant):
    await make_profile("user-1")
    await grant("user-1", "static")

    data = (await client.get("/api/v1/admin/analytics/summary")).json()

    assert data["total_users"] == 1
    assert data["active_entitlements"] == {"static": 1}


async def test_assign_program(client: AsyncClient, admin, make_profile):
    await make_profile("user-1")

    response = await client.post(
        "/api/v1/admin/programs",
        json={
            "title": "Jõuplokk",
            "assigned_to": "user-1",
            "duration_weeks": 6,
            "days": [{"title": "A", "items": [{"exercise_name": "Squat", "sets": 4, "reps": "8", "weight_kg": 50}]}],
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["assigned_to"] == "user-1"
    assert data["duration_weeks"] == 6
