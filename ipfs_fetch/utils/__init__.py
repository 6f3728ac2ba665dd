"""
Utility helpers for ipfs_fetch.
"""

from .cache import CacheEntry, TTLCache

__all__ = [
    "CacheEntry",
    "TTLCache",
]
