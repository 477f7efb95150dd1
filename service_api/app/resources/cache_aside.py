"""
Cache-aside request handling for per-user resources.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..auth.verifier import Principal
from ..cache.redis_cache import FLUSH_ALL_PATTERN, RedisCache


@dataclass(frozen=True)
class CachedResource:
    """A per-user resource memoized under ``<namespace>:<user id>``."""
    namespace: str
    ttl_seconds: int
    build: Callable[[Principal], Dict[str, Any]]

    def key_for(self, user_id: str) -> str:
        return f"{self.namespace}:{user_id}"


class CacheAsideHandler:
    """Serves resources from the cache, computing and storing them on a miss.

    Cache results only ever change the ``cached`` flag and latency, never
    the outcome: a failed lookup is a miss and a failed store is ignored.
    """

    def __init__(self, cache: RedisCache, metrics: Optional[MetricsCollector] = None):
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("backend-api.resources")

    async def fetch(self, resource: CachedResource, principal: Principal) -> Dict[str, Any]:
        cache_key = resource.key_for(principal.id)

        cached = await self._timed("get", self.cache.get(cache_key))
        if isinstance(cached, dict):
            self._record(resource.namespace, hit=True)
            self.logger.info("Serving from cache", cache_key=cache_key)
            return {**cached, "cached": True}

        if cached is not None:
            self.logger.warning("Ignoring malformed cache entry", cache_key=cache_key)

        self._record(resource.namespace, hit=False)
        payload = resource.build(principal)

        stored = await self._timed("set", self.cache.set(cache_key, payload, resource.ttl_seconds))
        if stored:
            self.logger.info("Response cached", cache_key=cache_key, ttl=resource.ttl_seconds)
        else:
            self.logger.info("Response not cached", cache_key=cache_key)

        return {**payload, "cached": False}

    async def flush(self, pattern: Optional[str] = None) -> bool:
        return await self._timed("flush", self.cache.flush(pattern or FLUSH_ALL_PATTERN))

    async def clear_user(self, user_id: str, resources: Iterable[CachedResource]) -> List[str]:
        """Delete every resource key of ``user_id`` and return the keys."""
        keys = [resource.key_for(user_id) for resource in resources]
        for key in keys:
            if not await self._timed("delete", self.cache.delete(key)):
                self.logger.info("Cache key not deleted", cache_key=key)

        self.logger.info("Cleared user cache", target_user_id=user_id, keys=keys)
        return keys

    async def _timed(self, operation: str, awaitable):
        if self.metrics is None:
            return await awaitable
        with self.metrics.time_operation("cache_operation_duration_seconds", operation=operation):
            return await awaitable

    def _record(self, namespace: str, hit: bool):
        if self.metrics is not None:
            self.metrics.record_cache_request(namespace, hit)
