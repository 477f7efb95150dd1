"""
Shared fixtures for backend API tests.
"""

import fnmatch
from typing import Any, Dict, Optional, Tuple

import pytest
from firebase_admin import auth as firebase_auth

from service_api.app.cache.redis_cache import RedisCache
from shared.retry import RetryConfig


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the cache uses."""

    def __init__(self):
        self.store: Dict[str, Tuple[str, Optional[float]]] = {}
        self.now = 0.0
        self.fail_with: Optional[Exception] = None
        self.closed = False
        self.commands = []

    def advance(self, seconds: float):
        self.now += seconds

    def ttl(self, key: str) -> Optional[float]:
        _, expires_at = self.store[key]
        return None if expires_at is None else expires_at - self.now

    def _check(self, command: str):
        self.commands.append(command)
        if self.fail_with is not None:
            raise self.fail_with

    def _live(self, key: str) -> bool:
        entry = self.store.get(key)
        if entry is None:
            return False
        _, expires_at = entry
        if expires_at is not None and expires_at <= self.now:
            del self.store[key]
            return False
        return True

    async def ping(self):
        self._check("ping")
        return True

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        return self.store[key][0] if self._live(key) else None

    async def setex(self, key: str, ttl: int, value: str):
        self._check("setex")
        self.store[key] = (value, self.now + ttl)
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        removed = 0
        for key in keys:
            if self._live(key):
                del self.store[key]
                removed += 1
        return removed

    async def flushdb(self):
        self._check("flushdb")
        self.store.clear()
        return True

    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        self._check("scan")
        for key in list(self.store):
            if self._live(key) and (match is None or fnmatch.fnmatchcase(key, match)):
                yield key

    async def aclose(self):
        self.closed = True


def no_reconnect() -> RetryConfig:
    return RetryConfig(max_attempts=0, backoff_strategy="fixed", jitter=False)


def fast_reconnect(max_attempts: int = 5) -> RetryConfig:
    return RetryConfig(
        max_attempts=max_attempts,
        base_delay=0.001,
        max_delay=0.005,
        jitter=False,
        backoff_strategy="linear",
        max_total_time=5.0,
    )


USER_CLAIMS: Dict[str, Dict[str, Any]] = {
    "token-u1": {
        "uid": "u1",
        "email": "a@b.com",
        "email_verified": True,
        "name": "Ada",
        "picture": "https://example.com/ada.png",
    },
    "token-u2": {
        "uid": "u2",
        "email": "c@d.com",
        "email_verified": False,
    },
}


def fake_verify_id_token(token: str, app=None, check_revoked: bool = False) -> Dict[str, Any]:
    if token not in USER_CLAIMS:
        raise firebase_auth.InvalidIdTokenError("Could not verify token signature.")
    return dict(USER_CLAIMS[token])


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis):
    """Cache client wired to the in-memory store; not yet connected."""
    return RedisCache(
        "redis://test:6379",
        reconnect_policy=no_reconnect(),
        client_factory=lambda url: fake_redis
    )


@pytest.fixture
def unreachable_cache():
    """Cache client whose store refuses every connection."""
    from redis.exceptions import ConnectionError as RedisConnectionError

    def factory(url):
        client = FakeRedis()
        client.fail_with = RedisConnectionError("Connection refused")
        return client

    return RedisCache("redis://down:6379", reconnect_policy=no_reconnect(), client_factory=factory)
