"""Tests for the album endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from albumcharts.deps import get_album_store
from albumcharts.errors import ConflictError, ProtocolError, StoreError
from albumcharts.main import app
from albumcharts.stores.redis import RedisAlbumStore

from tests.conftest import ALBUMS


@pytest.fixture
async def api_store(fake_redis) -> RedisAlbumStore:
    store = RedisAlbumStore(fake_redis.connection_pool)
    for album in ALBUMS:
        await store.add(album)
    return store


@pytest.fixture
async def client(api_store: RedisAlbumStore):
    """Create test client backed by the fake Redis store."""
    app.dependency_overrides[get_album_store] = lambda: api_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_show_album(client: AsyncClient):
    response = await client.get("/v1/albums/2")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == 2
    assert data["title"] == "Back in Black"
    assert data["artist"] == "AC/DC"
    assert data["price"] == "5.95"
    assert data["likes"] == 3
    assert data["display"] == "Back in Black by AC/DC: £5.95 [3 likes]"


@pytest.mark.asyncio
async def test_show_missing_album_returns_404(client: AsyncClient):
    response = await client.get("/v1/albums/999")
    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "ALBUM_NOT_FOUND"
    assert error["detail"] == {"album_id": 999}


@pytest.mark.asyncio
@pytest.mark.parametrize("album_id", ["abc", "0", "-1"])
async def test_show_album_rejects_invalid_id(client: AsyncClient, album_id: str):
    response = await client.get(f"/v1/albums/{album_id}")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_like_redirects_to_album(client: AsyncClient):
    response = await client.post("/v1/albums/2/likes")
    assert response.status_code == 303
    assert response.headers["location"].endswith("/v1/albums/2")

    response = await client.get("/v1/albums/2")
    assert response.json()["likes"] == 4


@pytest.mark.asyncio
async def test_like_missing_album_returns_404(client: AsyncClient, fake_redis):
    response = await client.post("/v1/albums/999/likes")
    assert response.status_code == 404
    assert await fake_redis.exists("album:999") == 0
    assert await fake_redis.zcard("likes") == len(ALBUMS)


@pytest.mark.asyncio
async def test_popular_defaults_to_top_three(client: AsyncClient):
    response = await client.get("/v1/albums/popular")
    assert response.status_code == 200
    data = response.json()
    assert data["limit"] == 3
    assert data["albumCount"] == 3
    assert [a["rank"] for a in data["albums"]] == [1, 2, 3]
    assert [a["likes"] for a in data["albums"]] == [12, 8, 8]
    assert data["albums"][0]["title"] == "Rumours"


@pytest.mark.asyncio
async def test_popular_limit_larger_than_catalog(client: AsyncClient):
    response = await client.get("/v1/albums/popular", params={"limit": 50})
    assert response.status_code == 200
    data = response.json()
    assert data["albumCount"] == len(ALBUMS)
    assert data["albums"][-1]["id"] == 2


@pytest.mark.asyncio
async def test_popular_rejects_invalid_limit(client: AsyncClient):
    response = await client.get("/v1/albums/popular", params={"limit": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (StoreError("Redis command failed: Connection refused"), 503, "STORE_UNAVAILABLE"),
        (ConflictError(10), 503, "READ_CONFLICT"),
        (ProtocolError("Album 42 is in the likes chart but has no record"), 500, "STORE_PROTOCOL"),
    ],
)
async def test_popular_store_errors(
    client: AsyncClient,
    api_store: RedisAlbumStore,
    monkeypatch: pytest.MonkeyPatch,
    exc: Exception,
    status_code: int,
    code: str,
):
    async def failing_top(k: int):
        raise exc

    monkeypatch.setattr(api_store, "top", failing_top)

    response = await client.get("/v1/albums/popular")
    assert response.status_code == status_code
    assert response.json()["error"]["code"] == code


@pytest.mark.asyncio
async def test_store_not_initialized_returns_503():
    """Without the lifespan there is no store on app.state."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/v1/albums/1")
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"
