import pytest

from albumcharts.stores.redis import RedisAlbumStore
from scripts.seed import SAMPLE_ALBUMS, seed_albums


@pytest.mark.asyncio
async def test_seed_albums_is_idempotent(fake_redis) -> None:
    store = RedisAlbumStore(fake_redis.connection_pool)

    assert await seed_albums(store, SAMPLE_ALBUMS) == len(SAMPLE_ALBUMS)
    await store.increment_likes(2)
    assert await seed_albums(store, SAMPLE_ALBUMS) == 0

    # Existing likes survive a re-seed.
    assert (await store.get(2)).likes == 4
    assert await fake_redis.zcard("likes") == len(SAMPLE_ALBUMS)
    assert [a.id for a in await store.top(1)] == [3]
