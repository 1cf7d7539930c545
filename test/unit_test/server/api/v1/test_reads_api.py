import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

ARTICLE = {
    "slug": "kaelavalu-kontoris",
    "title": "Kaelavalu kontoris",
    "summary": "Lühike kokkuvõte",
    "content": "Sisu " * 50,
    "category": "Kaelavalu",
    "format": "Steps",
    "tags": ["kael", "kontor"],
}


@pytest.fixture
def admin(auth_state):
    return auth_state.login("admin-1", role="admin")


async def test_admin_article_lifecycle(client: AsyncClient, admin, auth_state):
    created = await client.post("/api/v1/admin/articles", json=ARTICLE)
    assert created.status_code == 201
    article = created.json()
    assert article["published"] is False
    assert article["read_time_minutes"] == 1

    auth_state.logout()
    assert (await client.get(f"/api/v1/reads/{ARTICLE['slug']}")).status_code == 404
    assert (await client.get("/api/v1/reads")).json() == []

    auth_state.login("admin-1", role="admin")
    published = await client.patch(f"/api/v1/admin/articles/{article['id']}", json={"published": True})
    assert published.status_code == 200

    auth_state.logout()
    read = await client.get(f"/api/v1/reads/{ARTICLE['slug']}")
    assert read.status_code == 200
    assert read.json()["title"] == "Kaelavalu kontoris"
    assert [a["slug"] for a in (await client.get("/api/v1/reads", params={"tag": "kael"})).json()] == [ARTICLE["slug"]]
    assert (await client.get("/api/v1/reads", params={"category": "Magamine"})).json() == []

    auth_state.login("admin-1", role="admin")
    deleted = await client.delete(f"/api/v1/admin/articles/{article['id']}")
    assert deleted.status_code == 204
    assert (await client.get("/api/v1/admin/articles")).json() == []


async def test_duplicate_slug(client: AsyncClient, admin):
    await client.post("/api/v1/admin/articles", json=ARTICLE)
    response = await client.post("/api/v1/admin/articles", json=ARTICLE)
    assert response.status_code == 409


async def test_invalid_article_fields(client: AsyncClient, admin):
    response = await client.post("/api/v1/admin/articles", json={**ARTICLE, "slug": "Not A Slug"})
    assert response.status_code == 422


async def test_editor_is_admin_only(client: AsyncClient, auth_state):
    auth_state.login()
    response = await client.post("/api/v1/admin/articles", json=ARTICLE)
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"
