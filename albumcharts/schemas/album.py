"""Schemas for the album endpoints (/v1/albums)."""

from decimal import Decimal

from pydantic import BaseModel, Field

from albumcharts.models import Album


class AlbumOut(BaseModel):
    """A single album with its current likes."""

    id: int = Field(ge=1)
    title: str
    artist: str
    price: Decimal = Field(ge=0, decimal_places=2)
    likes: int = Field(ge=0)
    display: str

    @classmethod
    def from_album(cls, album: Album) -> "AlbumOut":
        return cls(
            id=album.id,
            title=album.title,
            artist=album.artist,
            price=album.price,
            likes=album.likes,
            display=album.display,
        )


class ChartEntry(AlbumOut):
    """An album in the popular chart."""

    rank: int = Field(ge=1)


class PopularResponse(BaseModel):
    """Response payload for GET /v1/albums/popular."""

    limit: int = Field(ge=1)
    albums: list[ChartEntry]
    album_count: int = Field(alias="albumCount", ge=0)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_albums(cls, albums: list[Album], *, limit: int) -> "PopularResponse":
        entries = [
            ChartEntry(rank=rank, **AlbumOut.from_album(album).model_dump())
            for rank, album in enumerate(albums, start=1)
        ]
        return cls(limit=limit, albums=entries, album_count=len(entries))
