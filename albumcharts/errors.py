"""Errors raised by the album store.

AlbumNotFoundError is a normal outcome; the others are operational faults.
"""


class AlbumStoreError(RuntimeError):
    """Base class for album store errors."""


class AlbumNotFoundError(AlbumStoreError):
    """No album record exists for the requested id."""

    def __init__(self, album_id: int) -> None:
        super().__init__(f"Album {album_id} not found")
        self.album_id = album_id


class StoreError(AlbumStoreError):
    """Redis could not be reached, timed out or rejected a command."""


class ProtocolError(AlbumStoreError):
    """Redis replied, but the reply does not have the expected shape."""


class ConflictError(AlbumStoreError):
    """The chart kept changing under an optimistic read."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Popular albums read aborted after {attempts} attempts")
        self.attempts = attempts
