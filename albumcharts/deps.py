"""FastAPI dependencies."""

from fastapi import Request

from albumcharts.errors import StoreError
from albumcharts.stores.redis import RedisAlbumStore


def get_album_store(request: Request) -> RedisAlbumStore:
    """Get the album store created by the application lifespan."""
    store = getattr(request.app.state, "album_store", None)
    if store is None:
        raise StoreError("Album store not initialized")
    return store
