"""Album Charts: albums, likes and a consistent most-liked chart on Redis."""
