import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_signup_with_trial(client: AsyncClient, providers, read_json):
    providers.on("POST", "/auth/v1/admin/users", {"id": "user-9", "email": "uus@example.com"})

    response = await client.post("/api/v1/trial/start", json={"email": " Uus@Example.com ", "password": "salasona1"})

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == "user-9"
    assert data["product"] == "static"
    created = read_json(providers.calls_to("POST", "/auth/v1/admin/users")[0])
    assert created["email"] == "uus@example.com"
    assert created["email_confirm"] is True


async def test_signup_rejects_short_password(client: AsyncClient, providers):
    response = await client.post("/api/v1/trial/start", json={"email": "uus@example.com", "password": "123"})

    assert response.status_code == 422
    assert providers.calls == []


async def test_signup_with_existing_email(client: AsyncClient, providers):
    providers.on("POST", "/auth/v1/admin/users", {"msg": "User already registered"}, status_code=422)

    response = await client.post("/api/v1/trial/start", json={"email": "mari@example.com", "password": "salasona1"})

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_start_once(client: AsyncClient, auth_state):
    auth_state.login()

    first = await client.post("/api/v1/trial/start-once")
    second = await client.post("/api/v1/trial/start-once")

    assert first.status_code == 200
    assert first.json()["status"] == "trialing"
    assert second.status_code == 409
    assert second.json()["error"] == "TRIAL_ALREADY_USED"


async def test_start_once_requires_login(client: AsyncClient):
    response = await client.post("/api/v1/trial/start-once")
    assert response.status_code == 401
