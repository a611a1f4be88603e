"""Redis store for albums and the likes chart.

Layout:
- album:<id>  hash with the album fields (existence of the hash = existence of the album)
- likes       sorted set, member = album id, score = likes count

Invariant: for every album hash, ZSCORE likes <id> == HGET album:<id> likes.

Handles:
- Single album lookup
- Atomic like increments (Lua, both structures or neither)
- Consistent popular-albums reads (Lua, or WATCH/MULTI/EXEC with bounded restarts)
- Transactional bulk load, add-if-absent and atomic delete

The connection pool is created once at startup and passed in; every operation
checks out one connection and returns it on every exit path.
"""

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
import logging
from typing import Any, Literal

import redis.asyncio as redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError

from albumcharts.errors import AlbumNotFoundError, ConflictError, ProtocolError, StoreError
from albumcharts.models import Album
from albumcharts.settings import Settings
from albumcharts.stores.scripts import (
    ADD_ALBUM_IF_ABSENT,
    DELETE_ALBUM,
    INCREMENT_LIKES,
    INVALID_LAYOUT,
    NOT_FOUND,
    TOP_ALBUMS,
)

logger = logging.getLogger("uvicorn.error")

TopKStrategy = Literal["script", "watch"]


def create_pool(settings: Settings) -> redis.BlockingConnectionPool:
    """Create the process-wide Redis connection pool.

    Callers block for at most `redis_pool_timeout` seconds waiting for a free
    connection once `redis_max_connections` are checked out.
    """
    return redis.BlockingConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        timeout=settings.redis_pool_timeout,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=settings.redis_connect_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


class RedisAlbumStore:
    """Coordinates reads and writes that span album hashes and the likes chart."""

    def __init__(
        self,
        pool: redis.ConnectionPool,
        *,
        album_key_prefix: str = "album:",
        ranking_key: str = "likes",
        top_k_strategy: TopKStrategy = "script",
        top_k_max_attempts: int = 10,
    ) -> None:
        if top_k_strategy not in ("script", "watch"):
            raise ValueError(f"Unknown top-k strategy: {top_k_strategy}")
        if top_k_max_attempts < 1:
            raise ValueError("top_k_max_attempts must be >= 1")

        self._pool = pool
        self._client = redis.Redis(connection_pool=pool)
        self._album_key_prefix = album_key_prefix
        self._ranking_key = ranking_key
        self._top_k_strategy = top_k_strategy
        self._top_k_max_attempts = top_k_max_attempts

        self._increment_likes = self._client.register_script(INCREMENT_LIKES)
        self._delete_album = self._client.register_script(DELETE_ALBUM)
        self._add_album_if_absent = self._client.register_script(ADD_ALBUM_IF_ABSENT)
        self._top_albums = self._client.register_script(TOP_ALBUMS)

    @classmethod
    def from_settings(cls, pool: redis.ConnectionPool, settings: Settings) -> "RedisAlbumStore":
        return cls(
            pool,
            album_key_prefix=settings.album_key_prefix,
            ranking_key=settings.ranking_key,
            top_k_strategy=settings.top_k_strategy,
            top_k_max_attempts=settings.top_k_max_attempts,
        )

    def album_key(self, album_id: int | str) -> str:
        return f"{self._album_key_prefix}{album_id}"

    # ============================================================
    # Connection scoping
    # ============================================================

    @asynccontextmanager
    async def _connection(self) -> AsyncGenerator[redis.Redis, None]:
        """Check out one pooled connection for the duration of the block."""
        conn = redis.Redis(connection_pool=self._pool, single_connection_client=True)
        try:
            yield conn
        except RedisError as e:
            raise StoreError(f"Redis command failed: {e}") from e
        finally:
            await conn.aclose()

    @asynccontextmanager
    async def _pipeline(self) -> AsyncGenerator[Pipeline, None]:
        """Transactional pipeline; its connection is released on reset."""
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                yield pipe
        except RedisError as e:
            raise StoreError(f"Redis transaction failed: {e}") from e

    async def ping(self) -> None:
        """Validate connectivity."""
        async with self._connection() as conn:
            await conn.ping()

    # ============================================================
    # Albums
    # ============================================================

    async def get(self, album_id: int) -> Album:
        """Get a single album.

        Args:
            album_id: Album identifier.

        Returns:
            The album as currently stored.

        Raises:
            AlbumNotFoundError: If no album hash exists for the id.
            StoreError: If Redis cannot be reached.
            ProtocolError: If the stored hash is not a valid album.
        """
        async with self._connection() as conn:
            values = await conn.hgetall(self.album_key(album_id))

        if not values:
            raise AlbumNotFoundError(album_id)
        return self._parse_album(album_id, values)

    async def increment_likes(self, album_id: int) -> int:
        """Add one like to an album and to its chart entry in a single step.

        Args:
            album_id: Album identifier.

        Returns:
            The new likes count.

        Raises:
            AlbumNotFoundError: If the album does not exist (nothing is written).
            StoreError: If Redis cannot be reached.
            ProtocolError: If the reply is not two integers, the keys or the
                likes field are malformed (nothing is written), or the album's
                likes disagree with its chart score after the increment.
        """
        async with self._connection() as conn:
            reply = await self._increment_likes(
                keys=[self.album_key(album_id), self._ranking_key],
                args=[album_id],
                client=conn,
            )

        if (
            not isinstance(reply, list)
            or len(reply) != 2
            or not all(isinstance(v, int) for v in reply)
        ):
            raise ProtocolError(f"Unexpected increment reply for album {album_id}: {reply!r}")
        likes, chart_likes = reply
        if likes == NOT_FOUND:
            raise AlbumNotFoundError(album_id)
        if likes == INVALID_LAYOUT:
            raise ProtocolError(
                f"Album {album_id} or the likes chart has an unexpected layout; nothing was written"
            )
        if likes != chart_likes:
            raise ProtocolError(
                f"Album {album_id} has {likes} likes but chart score {chart_likes}"
            )
        logger.debug(f"Album {album_id} liked, now {likes} likes")
        return likes

    async def add_if_absent(self, album: Album) -> bool:
        """Write an album hash and its chart entry unless the album already exists.

        The existence check and both writes run in one Lua evaluation, so an
        existing album (and any likes it has gathered) is never overwritten.

        Returns:
            True if the album was added, False if it already existed.

        Raises:
            ProtocolError: If the likes chart has an unexpected type (nothing is written).
        """
        fields: list[str] = []
        for name, value in album.to_hash().items():
            fields.extend((name, value))

        async with self._connection() as conn:
            reply = await self._add_album_if_absent(
                keys=[self.album_key(album.id), self._ranking_key],
                args=[album.id, album.likes, *fields],
                client=conn,
            )

        if reply == INVALID_LAYOUT:
            raise ProtocolError(f"The likes chart has an unexpected layout; album {album.id} not added")
        if reply not in (0, 1):
            raise ProtocolError(f"Unexpected add reply for album {album.id}: {reply!r}")
        if reply:
            logger.debug(f"Album {album.id} stored")
        return bool(reply)

    async def add(self, album: Album) -> None:
        """Write an album hash and its chart entry in one MULTI/EXEC transaction.

        An existing album with the same id is overwritten.
        """
        async with self._pipeline() as pipe:
            pipe.hset(self.album_key(album.id), mapping=album.to_hash())
            pipe.zadd(self._ranking_key, {str(album.id): album.likes})
            await pipe.execute()
        logger.debug(f"Album {album.id} stored")

    async def delete(self, album_id: int) -> None:
        """Remove an album hash and its chart entry atomically.

        Raises:
            AlbumNotFoundError: If the album does not exist (nothing is removed).
            ProtocolError: If the likes chart has an unexpected type (nothing is removed).
        """
        async with self._connection() as conn:
            reply = await self._delete_album(
                keys=[self.album_key(album_id), self._ranking_key],
                args=[album_id],
                client=conn,
            )

        if reply == NOT_FOUND:
            raise AlbumNotFoundError(album_id)
        if reply == INVALID_LAYOUT:
            raise ProtocolError(f"The likes chart has an unexpected layout; album {album_id} not deleted")
        if reply != 1:
            raise ProtocolError(f"Unexpected delete reply for album {album_id}: {reply!r}")
        logger.debug(f"Album {album_id} deleted")

    # ============================================================
    # Popular albums
    # ============================================================

    async def top(self, k: int) -> list[Album]:
        """Get the k most liked albums, most liked first.

        All albums come from a single consistent view of the chart and the
        album hashes. Ties follow Redis' sorted-set order.

        Args:
            k: Number of albums. Fewer are returned if the catalog is smaller.

        Raises:
            StoreError: If Redis cannot be reached.
            ProtocolError: If a charted album has no hash, or its likes disagree with the chart.
            ConflictError: If the 'watch' strategy ran out of attempts.
        """
        if k <= 0:
            return []
        if self._top_k_strategy == "watch":
            return await self._top_watch(k)
        return await self._top_script(k)

    async def _top_script(self, k: int) -> list[Album]:
        async with self._connection() as conn:
            reply = await self._top_albums(
                keys=[self._ranking_key],
                args=[self._album_key_prefix, k],
                client=conn,
            )

        if not isinstance(reply, list) or len(reply) % 3:
            raise ProtocolError(f"Unexpected popular albums reply: {reply!r}")

        ranked: list[tuple[str, Any]] = []
        records: list[dict[str, str]] = []
        for i in range(0, len(reply), 3):
            member, score, fields = reply[i], reply[i + 1], reply[i + 2]
            if not isinstance(fields, list) or len(fields) % 2:
                raise ProtocolError(f"Unexpected fields for album {member}: {fields!r}")
            ranked.append((member, score))
            records.append(dict(zip(fields[::2], fields[1::2])))
        return self._build_chart(ranked, records)

    async def _top_watch(self, k: int) -> list[Album]:
        async with self._pipeline() as pipe:
            for attempt in range(1, self._top_k_max_attempts + 1):
                try:
                    await pipe.watch(self._ranking_key)
                    ranked = await pipe.zrevrange(self._ranking_key, 0, k - 1, withscores=True)
                    if not ranked:
                        return []
                    pipe.multi()
                    for member, _ in ranked:
                        pipe.hgetall(self.album_key(member))
                    records = await pipe.execute()
                except WatchError:
                    logger.warning(
                        f"Likes chart changed during read, trying again "
                        f"(attempt {attempt}/{self._top_k_max_attempts})"
                    )
                    continue
                return self._build_chart(ranked, records)

        raise ConflictError(self._top_k_max_attempts)

    def _build_chart(
        self,
        ranked: Sequence[tuple[str, Any]],
        records: Sequence[dict[str, str]],
    ) -> list[Album]:
        """Pair chart entries with their hashes, checking the invariant."""
        if len(ranked) != len(records):
            raise ProtocolError(f"Got {len(records)} album records for {len(ranked)} chart entries")

        albums: list[Album] = []
        for (member, score), values in zip(ranked, records):
            if not values:
                raise ProtocolError(f"Album {member} is in the likes chart but has no record")
            album = self._parse_album(member, values)
            try:
                chart_likes = float(score)
            except (TypeError, ValueError) as e:
                raise ProtocolError(f"Invalid chart score for album {member}: {score!r}") from e
            if str(album.id) != str(member) or album.likes != chart_likes:
                raise ProtocolError(
                    f"Album {member} record (id={album.id}, likes={album.likes}) "
                    f"disagrees with chart score {score}"
                )
            albums.append(album)
        return albums

    @staticmethod
    def _parse_album(album_id: int | str, values: dict[str, str]) -> Album:
        try:
            return Album.from_hash(values)
        except ValueError as e:
            raise ProtocolError(f"Invalid record for album {album_id}: {e}") from e
