"""Album endpoints.

GET  /v1/albums/popular          - Most liked albums, most liked first.
GET  /v1/albums/{albumId}        - A single album.
POST /v1/albums/{albumId}/likes  - Add a like, then 303 to the album.

Routers are thin: the store owns the consistency rules.
"""

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import RedirectResponse

from albumcharts.deps import get_album_store
from albumcharts.schemas import AlbumOut, ErrorResponse, PopularResponse
from albumcharts.settings import get_settings
from albumcharts.stores.redis import RedisAlbumStore

router = APIRouter()

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Album not found"}}


# Declared before /{album_id} so "popular" is not parsed as an id.
@router.get("/popular", response_model=PopularResponse)
async def list_popular(
    limit: int | None = Query(
        default=None,
        ge=1,
        le=100,
        description="Number of albums to return (defaults to POPULAR_LIMIT)",
    ),
    store: RedisAlbumStore = Depends(get_album_store),
) -> PopularResponse:
    """Get the most liked albums from one consistent read."""
    k = limit or get_settings().popular_limit
    albums = await store.top(k)
    return PopularResponse.from_albums(albums, limit=k)


@router.get("/{album_id}", response_model=AlbumOut, responses=NOT_FOUND_RESPONSE)
async def show_album(
    album_id: int = Path(ge=1, description="Album ID"),
    store: RedisAlbumStore = Depends(get_album_store),
) -> AlbumOut:
    """Get a single album.

    Raises:
        AlbumNotFoundError: Rendered as 404.
    """
    album = await store.get(album_id)
    return AlbumOut.from_album(album)


@router.post("/{album_id}/likes", status_code=303, responses=NOT_FOUND_RESPONSE)
async def add_like(
    request: Request,
    album_id: int = Path(ge=1, description="Album ID"),
    store: RedisAlbumStore = Depends(get_album_store),
) -> RedirectResponse:
    """Add one like to an album.

    Redirects to the album so the client sees the new count.
    """
    await store.increment_likes(album_id)
    return RedirectResponse(
        url=str(request.url_for("show_album", album_id=album_id)),
        status_code=303,
    )
