#!/usr/bin/env python3
"""Seed Redis with the sample album catalog.

Creates, for each album:
- the album:<id> hash
- its entry in the likes chart
in one Lua evaluation, so the two never exist without each other.

Seed script is idempotent: albums that already exist are left alone
(their likes are not reset). The existence check runs in the same evaluation
as the writes, so a like landing mid-seed is never overwritten.

Usage:
    python -m scripts.seed
"""

import asyncio
from decimal import Decimal

from dotenv import load_dotenv

from albumcharts.models import Album
from albumcharts.settings import get_settings
from albumcharts.stores.redis import RedisAlbumStore, create_pool

load_dotenv()

SAMPLE_ALBUMS = [
    Album(id=1, title="Electric Ladyland", artist="Jimi Hendrix", price=Decimal("4.95"), likes=8),
    Album(id=2, title="Back in Black", artist="AC/DC", price=Decimal("5.95"), likes=3),
    Album(id=3, title="Rumours", artist="Fleetwood Mac", price=Decimal("7.95"), likes=12),
    Album(id=4, title="Nevermind", artist="Nirvana", price=Decimal("5.95"), likes=8),
]


async def seed_albums(store: RedisAlbumStore, albums: list[Album]) -> int:
    """Add albums that do not exist yet. Returns how many were added."""
    added = 0
    for album in albums:
        if await store.add_if_absent(album):
            added += 1
            print(f"  ✅ {album.display}")
        else:
            print(f"  ⏭️  {album.title} (exists)")
    return added


async def seed_database() -> None:
    settings = get_settings()
    pool = create_pool(settings)
    store = RedisAlbumStore.from_settings(pool, settings)
    try:
        await store.ping()
        print(f"Seeding albums into {settings.redis_url}")
        added = await seed_albums(store, SAMPLE_ALBUMS)
        print(f"Done: {added} added, {len(SAMPLE_ALBUMS) - added} skipped")
    finally:
        await pool.disconnect()


if __name__ == "__main__":
    asyncio.run(seed_database())
