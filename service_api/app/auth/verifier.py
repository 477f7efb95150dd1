"""
Bearer token verification against Firebase Authentication.
"""

import asyncio
from typing import Any, Dict, Optional

from firebase_admin import App
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from pydantic import BaseModel

from shared.errors import AuthenticationError, InvalidTokenError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class Principal(BaseModel):
    """Verified identity derived from a bearer token."""
    id: str
    email: Optional[str] = None
    email_verified: bool = False
    display_name: Optional[str] = None
    picture_url: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        """Build a principal from decoded ID token claims."""
        return cls(
            id=claims.get("uid") or claims["sub"],
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            display_name=claims.get("name"),
            picture_url=claims.get("picture"),
        )


class IdentityVerifier:
    """Verifies Firebase ID tokens.

    Every call goes to the identity provider; results are not cached.
    """

    def __init__(
        self,
        app: Optional[App] = None,
        *,
        check_revoked: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.app = app
        self.check_revoked = check_revoked
        self.metrics = metrics
        self.logger = get_logger("backend-api.auth.verifier")

    async def verify(self, token: Optional[str]) -> Principal:
        """Verify ``token`` and return its principal.

        Raises AuthenticationError when no token is given and
        InvalidTokenError when the provider rejects it or cannot be reached.
        """
        if not token:
            raise AuthenticationError()

        try:
            # The SDK fetches signing certificates over blocking HTTP
            claims = await asyncio.to_thread(
                firebase_auth.verify_id_token,
                token,
                app=self.app,
                check_revoked=self.check_revoked,
            )
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            self.logger.warning(
                "Token verification failed",
                reason=type(e).__name__,
                error=str(e)
            )
            self._record("invalid")
            raise InvalidTokenError(details={"reason": type(e).__name__})

        self._record("valid")
        return Principal.from_claims(claims)

    def _record(self, status: str):
        if self.metrics is not None:
            self.metrics.record_token_verification(status)
