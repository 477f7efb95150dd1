"""
Request-level policies for the backend API.

- auth_middleware: bearer token extraction, authentication, and the
  per-user scope check for administrative cache operations.
"""

from .auth_middleware import AuthMiddleware

__all__ = ["AuthMiddleware"]
