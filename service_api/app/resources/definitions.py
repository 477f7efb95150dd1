"""
Per-user resources served by the API and their cache settings.
"""

from typing import Any, Dict, List

from shared.base_service import utc_timestamp
from shared.config import BaseConfig
from ..auth.verifier import Principal
from .cache_aside import CachedResource


USER_DATA_NAMESPACE = "user_data"
USER_PROFILE_NAMESPACE = "user_profile"

DEFAULT_DATA_TTL = 300        # 5 minutes
DEFAULT_PROFILE_TTL = 3600    # 1 hour


def build_user_data(principal: Principal) -> Dict[str, Any]:
    return {
        "message": "Hello from the backend!",
        "timestamp": utc_timestamp(),
        "userId": principal.id,
        "userEmail": principal.email,
        "authenticated": True,
    }


def build_user_profile(principal: Principal) -> Dict[str, Any]:
    return {
        "uid": principal.id,
        "email": principal.email,
        "emailVerified": principal.email_verified,
        "name": principal.display_name or "Not provided",
        "picture": principal.picture_url,
    }


class UserResources:
    """The resource set keyed by user, with TTLs taken from configuration."""

    def __init__(self, data_ttl: int = DEFAULT_DATA_TTL, profile_ttl: int = DEFAULT_PROFILE_TTL):
        self.data = CachedResource(USER_DATA_NAMESPACE, data_ttl, build_user_data)
        self.profile = CachedResource(USER_PROFILE_NAMESPACE, profile_ttl, build_user_profile)

    @classmethod
    def from_config(cls, config: BaseConfig) -> "UserResources":
        return cls(data_ttl=config.data_cache_ttl, profile_ttl=config.profile_cache_ttl)

    def all(self) -> List[CachedResource]:
        return [self.data, self.profile]
