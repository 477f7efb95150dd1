"""
Redis caching layer for the backend API.

The cache is an accelerator only: every public operation absorbs store
errors and reports them as a miss / ``False`` instead of raising, so request
handlers keep working when Redis is slow, down, or was never reachable.
"""

import asyncio
import json
from enum import Enum
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from shared.logging import get_logger
from shared.retry import RetryBudget, RetryConfig


FLUSH_ALL_PATTERN = "*"

# Errors that mean the connection itself is gone rather than one bad command.
CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)

# Everything a command may raise. Replies that are not valid UTF-8 fail
# inside the client parser with UnicodeDecodeError, not a RedisError.
COMMAND_ERRORS = (RedisError, OSError, UnicodeError)


class CacheState(Enum):
    """Connection states of the cache client."""
    DISCONNECTED = "disconnected"  # Never connected, or closed on shutdown
    CONNECTING = "connecting"      # Connect or reconnect attempt in flight
    READY = "ready"                # Commands are sent to Redis
    DEGRADED = "degraded"          # Store unreachable; operations are no-ops


def default_reconnect_policy() -> RetryConfig:
    """Linear backoff of 100ms per attempt, capped at 3s, 10 attempts, 1h window."""
    return RetryConfig(
        max_attempts=10,
        base_delay=0.1,
        max_delay=3.0,
        jitter=False,
        backoff_strategy="linear",
        max_total_time=3600.0,
    )


def _default_client_factory(redis_url: str) -> redis.Redis:
    return redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30
    )


class RedisCache:
    """JSON key-value cache over Redis with a degraded no-op mode."""

    def __init__(
        self,
        redis_url: str,
        *,
        reconnect_policy: Optional[RetryConfig] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.redis_url = redis_url
        self.reconnect_policy = reconnect_policy or default_reconnect_policy()
        self.logger = get_logger("backend-api.cache.redis")

        self._client_factory = client_factory or _default_client_factory
        self._client: Optional[Any] = None
        self._state = CacheState.DISCONNECTED
        self._connect_lock = asyncio.Lock()
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is CacheState.READY and self._client is not None

    def _set_state(self, state: CacheState, **context):
        if state is not self._state:
            self.logger.info(
                "Cache state changed",
                previous=self._state.value,
                current=state.value,
                **context
            )
        self._state = state

    async def connect(self) -> bool:
        """Connect to Redis.

        On failure the client is left DEGRADED with a background reconnect
        scheduled; the caller is never blocked waiting for the store.
        """
        if self.is_ready:
            return True

        connected = await self._open_connection()
        if not connected:
            self._schedule_reconnect()
        return connected

    async def disconnect(self):
        """Stop reconnecting and close the client."""
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        async with self._connect_lock:
            await self._close_client()
            self._set_state(CacheState.DISCONNECTED)

        self.logger.info("Redis cache stopped")

    async def _open_connection(self) -> bool:
        async with self._connect_lock:
            if self.is_ready:
                return True

            self._set_state(CacheState.CONNECTING)
            await self._close_client()

            client = None
            try:
                client = self._client_factory(self.redis_url)
                await client.ping()
            except Exception as e:
                if client is not None:
                    await self._safe_close(client)
                self.logger.warning("Redis connection failed", error=str(e))
                self._set_state(CacheState.DEGRADED, error=str(e))
                return False

            self._client = client
            self._set_state(CacheState.READY)
            return True

    async def _close_client(self):
        client, self._client = self._client, None
        if client is not None:
            await self._safe_close(client)

    async def _safe_close(self, client):
        try:
            await client.aclose()
        except Exception as e:
            self.logger.debug("Error closing Redis client", error=str(e))

    def _schedule_reconnect(self):
        if self.reconnect_policy.max_attempts <= 0:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return

        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_loop())

    async def _reconnect_loop(self):
        budget = RetryBudget(self.reconnect_policy)

        while True:
            delay = budget.next_delay()
            if delay is None:
                self.logger.error(
                    "Redis reconnect abandoned, continuing without cache",
                    attempts=budget.attempts,
                    elapsed_seconds=round(budget.elapsed, 3)
                )
                return

            await asyncio.sleep(delay)
            self.logger.info("Redis reconnect attempt", attempt=budget.attempts, delay=delay)

            if await self._open_connection():
                self.logger.info("Redis reconnected", attempts=budget.attempts)
                return

    def _handle_error(self, operation: str, key: Optional[str], error: Exception):
        self.logger.error("Redis operation failed", operation=operation, key=key, error=str(error))

        if isinstance(error, CONNECTION_ERRORS) and self._state is CacheState.READY:
            self._set_state(CacheState.DEGRADED, error=str(error))
            self._schedule_reconnect()

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value, or None on miss, error, or when not ready."""
        if not self.is_ready:
            return None

        try:
            raw = await self._client.get(key)
        except COMMAND_ERRORS as e:
            self._handle_error("get", key, e)
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            self.logger.warning("Discarding undecodable cache entry", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> bool:
        """Store ``value`` as JSON with an expiry."""
        if not self.is_ready:
            return False

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.logger.error("Value is not JSON serializable", key=key, error=str(e))
            return False

        try:
            await self._client.setex(key, ttl_seconds, payload)
        except COMMAND_ERRORS as e:
            self._handle_error("set", key, e)
            return False

        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        if not self.is_ready:
            return False

        try:
            await self._client.delete(key)
        except COMMAND_ERRORS as e:
            self._handle_error("delete", key, e)
            return False

        return True

    async def flush(self, pattern: str = FLUSH_ALL_PATTERN) -> bool:
        """Clear the database for ``*``, otherwise only keys matching the glob."""
        if not self.is_ready:
            return False

        try:
            if pattern == FLUSH_ALL_PATTERN:
                await self._client.flushdb()
                self.logger.info("Cache flushed")
                return True

            keys = [key async for key in self._client.scan_iter(match=pattern, count=500)]
            if keys:
                await self._client.delete(*keys)
            self.logger.info("Cleared cache pattern", pattern=pattern, keys_count=len(keys))
            return True

        except COMMAND_ERRORS as e:
            self._handle_error("flush", pattern, e)
            return False

    async def health(self) -> Dict[str, str]:
        """Report store health without raising."""
        if not self.is_ready:
            return {
                "status": "disconnected",
                "message": "Redis not connected",
                "state": self._state.value
            }

        try:
            await self._client.ping()
        except COMMAND_ERRORS as e:
            self._handle_error("ping", None, e)
            return {"status": "unhealthy", "message": str(e), "state": self._state.value}

        return {"status": "healthy", "message": "Redis is responding", "state": self._state.value}
