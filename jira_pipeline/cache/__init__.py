"""Caching module (ephemeral + persisted tiers)."""

from .keys import KEY_SEPARATOR, CacheKey, assignable_users_key, make_key
from .store import CacheStore

__all__ = [
    "CacheKey",
    "CacheStore",
    "KEY_SEPARATOR",
    "assignable_users_key",
    "make_key",
]
