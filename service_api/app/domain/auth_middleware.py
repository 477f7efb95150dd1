"""
Authentication middleware for the backend API.
"""

from fastapi import Request
from typing import Optional

from shared.logging import get_logger, set_user_context
from shared.errors import AuthorizationError
from ..auth.verifier import IdentityVerifier, Principal


class AuthMiddleware:
    """Resolves the caller's principal from the Authorization header."""

    def __init__(self, verifier: IdentityVerifier, allow_cross_user: bool = False):
        self.verifier = verifier
        self.allow_cross_user = allow_cross_user
        self.logger = get_logger("backend-api.auth_middleware")

    @staticmethod
    def extract_token(auth_header: Optional[str]) -> Optional[str]:
        """Return the credential part of ``<scheme> <token>``, if any."""
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) < 2:
            return None

        return parts[1]

    async def authenticate_request(self, request: Request) -> Principal:
        """Authenticate incoming request with a bearer ID token.

        A missing token is rejected before the identity provider is called.
        """
        token = self.extract_token(request.headers.get("Authorization"))
        principal = await self.verifier.verify(token)

        set_user_context(principal.id)
        request.state.principal = principal

        self.logger.info("Request authenticated", user_id=principal.id)
        return principal

    def authorize_user_scope(self, principal: Principal, user_id: str) -> None:
        """Allow operations on ``user_id``'s data only for that same user.

        ``allow_cross_user`` lifts the restriction for deployments that
        treat every authenticated caller as an operator.
        """
        if user_id == principal.id or self.allow_cross_user:
            return

        self.logger.warning(
            "Cross-user cache operation denied",
            user_id=principal.id,
            target_user_id=user_id
        )
        raise AuthorizationError(
            "Cannot modify another user's cache",
            details={"target_user_id": user_id}
        )
