"""Data stores.

Stores handle:
- Redis: album hashes, the likes chart, and the atomic scripts that keep them in step

No HTTP concerns in stores - those belong in routes.
"""
