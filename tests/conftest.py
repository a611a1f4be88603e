"""Shared fixtures: an in-process Redis (fakeredis, with Lua) and a seeded album store."""

from decimal import Decimal

import fakeredis
import pytest

from albumcharts.models import Album
from albumcharts.stores.redis import RedisAlbumStore

ALBUMS = [
    Album(id=1, title="Electric Ladyland", artist="Jimi Hendrix", price=Decimal("4.95"), likes=8),
    Album(id=2, title="Back in Black", artist="AC/DC", price=Decimal("5.95"), likes=3),
    Album(id=3, title="Rumours", artist="Fleetwood Mac", price=Decimal("7.95"), likes=12),
    Album(id=4, title="Nevermind", artist="Nirvana", price=Decimal("5.95"), likes=8),
]


@pytest.fixture
async def fake_redis():
    """Fresh fake Redis server per test."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture(params=["script", "watch"])
def top_k_strategy(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
async def empty_store(fake_redis, top_k_strategy: str) -> RedisAlbumStore:
    """Album store with no albums."""
    return RedisAlbumStore(fake_redis.connection_pool, top_k_strategy=top_k_strategy)


@pytest.fixture
async def store(empty_store: RedisAlbumStore) -> RedisAlbumStore:
    """Album store seeded with the sample catalog."""
    for album in ALBUMS:
        await empty_store.add(album)
    return empty_store
