"""Domain models.

Models mirror the Redis layout:
- album:<id> hashes hold one Album each
- the `likes` sorted set ranks album ids by likes
"""

from albumcharts.models.album import Album

__all__ = ["Album"]
