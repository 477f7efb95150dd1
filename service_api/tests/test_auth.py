"""
Unit tests for identity verification and the auth middleware.
"""

import pytest
from unittest.mock import MagicMock, patch
from fastapi import Request
from firebase_admin import auth as firebase_auth

from service_api.app.auth.verifier import IdentityVerifier, Principal
from service_api.app.domain.auth_middleware import AuthMiddleware
from shared.errors import AuthenticationError, AuthorizationError, InvalidTokenError
from shared.metrics import MetricsCollector

from conftest import fake_verify_id_token


VERIFY_TARGET = "service_api.app.auth.verifier.firebase_auth.verify_id_token"


class TestPrincipal:
    """Test cases for Principal."""

    def test_from_full_claims(self):
        principal = Principal.from_claims({
            "uid": "u1",
            "email": "a@b.com",
            "email_verified": True,
            "name": "Ada",
            "picture": "https://example.com/ada.png"
        })

        assert principal.id == "u1"
        assert principal.email == "a@b.com"
        assert principal.email_verified is True
        assert principal.display_name == "Ada"
        assert principal.picture_url == "https://example.com/ada.png"

    def test_from_minimal_claims(self):
        principal = Principal.from_claims({"sub": "u2"})

        assert principal.id == "u2"
        assert principal.email is None
        assert principal.email_verified is False
        assert principal.display_name is None
        assert principal.picture_url is None


class TestIdentityVerifier:
    """Test cases for IdentityVerifier."""

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("backend-api")

    @pytest.fixture
    def verifier(self, metrics):
        return IdentityVerifier(metrics=metrics)

    @pytest.mark.asyncio
    async def test_valid_token(self, verifier, metrics):
        with patch(VERIFY_TARGET, side_effect=fake_verify_id_token) as mock_verify:
            principal = await verifier.verify("token-u1")

        assert principal.id == "u1"
        assert principal.email == "a@b.com"
        mock_verify.assert_called_once_with("token-u1", app=None, check_revoked=False)
        assert metrics.sample_value("token_verifications_total", {"status": "valid"}) == 1.0

    @pytest.mark.asyncio
    async def test_passes_app_and_revocation_flag(self):
        app = MagicMock()
        verifier = IdentityVerifier(app, check_revoked=True)

        with patch(VERIFY_TARGET, side_effect=fake_verify_id_token) as mock_verify:
            await verifier.verify("token-u2")

        mock_verify.assert_called_once_with("token-u2", app=app, check_revoked=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token_is_unauthenticated(self, verifier, token):
        with patch(VERIFY_TARGET) as mock_verify:
            with pytest.raises(AuthenticationError) as exc_info:
                await verifier.verify(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Access token required"
        mock_verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_token_is_forbidden(self, verifier, metrics):
        with patch(VERIFY_TARGET, side_effect=fake_verify_id_token):
            with pytest.raises(InvalidTokenError) as exc_info:
                await verifier.verify("forged")

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Invalid token"
        assert exc_info.value.details == {"reason": "InvalidIdTokenError"}
        assert metrics.sample_value("token_verifications_total", {"status": "invalid"}) == 1.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        firebase_auth.ExpiredIdTokenError("Token expired", cause=None),
        firebase_auth.RevokedIdTokenError("Token revoked"),
        firebase_auth.CertificateFetchError("Could not fetch certificates", cause=None),
        ValueError("The default Firebase app does not exist."),
    ])
    async def test_provider_failures_are_forbidden(self, verifier, error):
        with patch(VERIFY_TARGET, side_effect=error):
            with pytest.raises(InvalidTokenError):
                await verifier.verify("token-u1")


class TestAuthMiddleware:
    """Test cases for AuthMiddleware."""

    @pytest.fixture
    def auth_middleware(self):
        return AuthMiddleware(IdentityVerifier())

    @pytest.fixture
    def mock_request(self):
        request = MagicMock(spec=Request)
        request.headers = {}
        request.state = MagicMock()
        return request

    @pytest.mark.parametrize("header,expected", [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer abc.def", "abc.def"),
        ("bearer abc.def", "abc.def"),
        ("Basic abc.def", "abc.def"),
    ])
    def test_extract_token(self, header, expected):
        assert AuthMiddleware.extract_token(header) == expected

    @pytest.mark.asyncio
    async def test_authenticate_request_success(self, auth_middleware, mock_request):
        mock_request.headers = {"Authorization": "Bearer token-u1"}

        with patch(VERIFY_TARGET, side_effect=fake_verify_id_token):
            principal = await auth_middleware.authenticate_request(mock_request)

        assert principal.id == "u1"
        assert mock_request.state.principal == principal

    @pytest.mark.asyncio
    async def test_authenticate_request_no_header(self, auth_middleware, mock_request):
        with pytest.raises(AuthenticationError):
            await auth_middleware.authenticate_request(mock_request)

    @pytest.mark.asyncio
    async def test_authenticate_request_invalid_token(self, auth_middleware, mock_request):
        mock_request.headers = {"Authorization": "Bearer forged"}

        with patch(VERIFY_TARGET, side_effect=fake_verify_id_token):
            with pytest.raises(InvalidTokenError):
                await auth_middleware.authenticate_request(mock_request)

    def test_authorize_own_scope(self, auth_middleware):
        auth_middleware.authorize_user_scope(Principal(id="u1"), "u1")

    def test_authorize_other_scope_denied(self, auth_middleware):
        with pytest.raises(AuthorizationError) as exc_info:
            auth_middleware.authorize_user_scope(Principal(id="u1"), "u2")

        assert exc_info.value.status_code == 403

    def test_authorize_other_scope_when_allowed(self):
        middleware = AuthMiddleware(IdentityVerifier(), allow_cross_user=True)

        middleware.authorize_user_scope(Principal(id="u1"), "u2")
