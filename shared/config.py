"""
Shared configuration management for the backend API.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # HTTP surface
    port: int = Field(default=8000)
    host: str = Field(default="0.0.0.0")
    frontend_url: str = Field(default="http://localhost:3000")

    # Cache
    redis_url: str = Field(default="redis://localhost:6379")
    data_cache_ttl: int = Field(default=300, ge=1)
    profile_cache_ttl: int = Field(default=3600, ge=1)
    cache_reconnect_max_attempts: int = Field(default=10, ge=0)
    cache_reconnect_base_delay: float = Field(default=0.1, ge=0)
    cache_reconnect_max_delay: float = Field(default=3.0, ge=0)
    cache_reconnect_window: float = Field(default=3600.0, ge=0)

    # Identity provider
    firebase_credentials_file: str = Field(default="service-account-key.json")
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_check_revoked: bool = Field(default=False)

    # Administrative cache operations
    allow_cross_user_cache_clear: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
