"""
Cache package for the backend API.

Provides a Redis-backed JSON cache used by the request handlers to memoize
per-user responses. The cache never raises into its callers; when Redis is
unreachable it degrades to a no-op and reconnects in the background.
"""

from .redis_cache import CacheState, RedisCache, default_reconnect_policy

__all__ = ["CacheState", "RedisCache", "default_reconnect_policy"]
