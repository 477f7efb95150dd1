"""
Backend API service.

Authenticated JSON endpoints backed by a best-effort Redis cache.
"""

import asyncio
from typing import Any, Dict, Iterable, Optional

from fastapi import Depends, Request
from pydantic import BaseModel

from shared.base_service import BaseService, utc_timestamp
from shared.config import ServiceConfig
from shared.errors import ServiceError
from shared.retry import RetryConfig

from .auth.credentials import CredentialProvider, default_providers, initialize_identity_app
from .auth.verifier import IdentityVerifier, Principal
from .cache.redis_cache import FLUSH_ALL_PATTERN, RedisCache
from .domain.auth_middleware import AuthMiddleware
from .resources.cache_aside import CacheAsideHandler
from .resources.definitions import UserResources


SERVICE_NAME = "backend-api"


class FlushRequest(BaseModel):
    """Optional body of the flush endpoint."""
    pattern: Optional[str] = None


class ApiService(BaseService):
    """Backend API service implementation.

    The cache client and the identity verifier are injectable; when omitted
    they are built from configuration and the identity app is bootstrapped
    from the credential provider chain at startup.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache: Optional[RedisCache] = None,
        verifier: Optional[IdentityVerifier] = None,
        identity_providers: Optional[Iterable[CredentialProvider]] = None,
    ):
        super().__init__(SERVICE_NAME, config)

        self.cache = cache or RedisCache(
            self.config.redis_url,
            reconnect_policy=self._reconnect_policy()
        )

        self._bootstrap_identity = verifier is None
        self.verifier = verifier or IdentityVerifier(
            check_revoked=self.config.firebase_check_revoked,
            metrics=self.metrics
        )
        self.identity_providers = identity_providers

        self.auth = AuthMiddleware(self.verifier, allow_cross_user=self.config.allow_cross_user_cache_clear)
        self.resources = UserResources.from_config(self.config)
        self.handler = CacheAsideHandler(self.cache, self.metrics)

        self._setup_api_routes()

    def _reconnect_policy(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.config.cache_reconnect_max_attempts,
            base_delay=self.config.cache_reconnect_base_delay,
            max_delay=self.config.cache_reconnect_max_delay,
            jitter=False,
            backoff_strategy="linear",
            max_total_time=self.config.cache_reconnect_window,
        )

    def _setup_api_routes(self):
        """Set up API routes."""

        async def current_principal(request: Request) -> Principal:
            return await self.auth.authenticate_request(request)

        @self.app.get("/")
        async def root():
            """Public root endpoint."""
            return {
                "message": "Backend API is running!",
                "timestamp": utc_timestamp()
            }

        @self.app.get("/api/data")
        async def get_data(principal: Principal = Depends(current_principal)):
            """Per-user greeting, cached for the data TTL."""
            return await self.handler.fetch(self.resources.data, principal)

        @self.app.get("/api/profile")
        async def get_profile(principal: Principal = Depends(current_principal)):
            """Profile derived from the verified token, cached for the profile TTL."""
            return await self.handler.fetch(self.resources.profile, principal)

        @self.app.post("/api/cache/flush")
        async def flush_cache(
            body: Optional[FlushRequest] = None,
            principal: Principal = Depends(current_principal)
        ):
            """Flush the whole cache, or only keys matching a glob pattern."""
            pattern = body.pattern if body else None

            if not await self.handler.flush(pattern):
                raise ServiceError("Failed to flush cache", details={"pattern": pattern})

            self.logger.info("Cache flushed by user", pattern=pattern or FLUSH_ALL_PATTERN)
            suffix = f" for pattern: {pattern}" if pattern else ""
            return {
                "message": f"Cache flushed successfully{suffix}",
                "pattern": pattern or FLUSH_ALL_PATTERN
            }

        @self.app.delete("/api/cache/user/{user_id}")
        async def clear_user_cache(user_id: str, principal: Principal = Depends(current_principal)):
            """Drop the cached data and profile of one user."""
            self.auth.authorize_user_scope(principal, user_id)

            keys = await self.handler.clear_user(user_id, self.resources.all())
            return {
                "message": f"Cache cleared for user: {user_id}",
                "clearedKeys": keys
            }

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report cache health; the service is healthy without it."""
        return {"redis": await self.cache.health()}

    async def start(self):
        """Bootstrap identity and connect the cache."""
        if self._bootstrap_identity:
            providers = self.identity_providers or default_providers(self.config)
            # Application default credentials may probe the metadata server
            self.verifier.app = await asyncio.to_thread(initialize_identity_app, list(providers))

        if not await self.cache.connect():
            self.logger.warning("Redis connection failed, continuing without cache")

        self.logger.info("Backend API started", port=self.port, cache_state=self.cache.state.value)

    async def stop(self):
        await self.cache.disconnect()
        self.logger.info("Backend API stopped")


def create_app():
    """Create backend API application."""
    service = ApiService()
    return service.app


if __name__ == "__main__":
    service = ApiService()
    service.run()
