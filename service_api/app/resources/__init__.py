"""
Per-user API resources.

- definitions: payload builders, namespaces, and TTLs.
- cache_aside: the check-cache / compute / populate flow and the
  administrative flush and per-user clear operations.
"""

from .cache_aside import CacheAsideHandler, CachedResource
from .definitions import UserResources, USER_DATA_NAMESPACE, USER_PROFILE_NAMESPACE

__all__ = [
    "CacheAsideHandler",
    "CachedResource",
    "UserResources",
    "USER_DATA_NAMESPACE",
    "USER_PROFILE_NAMESPACE",
]
