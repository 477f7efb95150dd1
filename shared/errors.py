"""
Shared error handling for the backend API.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class AccessLayerException(Exception):
    """Base exception for backend services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response.

        Only the message is exposed to the client; code and details stay in
        server-side logs.
        """
        return ErrorResponse(error=self.message)


class AuthenticationError(AccessLayerException):
    """No usable credentials were presented."""

    status_code = 401

    def __init__(self, message: str = "Access token required", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class AuthorizationError(AccessLayerException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class InvalidTokenError(AuthorizationError):
    """A bearer token was presented but the identity provider rejected it."""

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "INVALID_TOKEN"


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ServiceError(AccessLayerException):
    """Service-related errors."""

    status_code = 500

    def __init__(self, message: str = "Service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """Requested route or resource does not exist."""

    status_code = 404

    def __init__(self, message: str = "Endpoint not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)
