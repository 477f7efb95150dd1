"""
Firebase Admin bootstrap from a prioritized list of credential providers.

Providers are tried in order and the first one that yields a credential
initializes the default Firebase app. When none succeeds the service still
starts; token verification then rejects every request.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import firebase_admin
from firebase_admin import credentials
from google.auth.exceptions import DefaultCredentialsError

from shared.config import BaseConfig
from shared.errors import AccessLayerException
from shared.logging import get_logger


PLACEHOLDER_PRIVATE_KEY_ID = "REPLACE_WITH_YOUR_PRIVATE_KEY_ID"

logger = get_logger("backend-api.auth.credentials")


class CredentialUnavailableError(AccessLayerException):
    """A credential provider could not produce a credential."""

    status_code = 500

    def __init__(self, provider: str, message: str):
        super().__init__("CREDENTIAL_UNAVAILABLE", message, {"provider": provider})


class CredentialProvider:
    """Produces a Firebase credential and, when known, its project id."""

    name = "provider"

    def load(self) -> Tuple[credentials.Base, Optional[str]]:
        raise NotImplementedError


class ServiceAccountFileProvider(CredentialProvider):
    """Service account key stored on local disk."""

    name = "service_account_file"

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Tuple[credentials.Base, Optional[str]]:
        if not self.path.is_file():
            raise CredentialUnavailableError(self.name, f"Service account key not found: {self.path}")

        try:
            info = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CredentialUnavailableError(self.name, f"Unreadable service account key: {e}")

        if info.get("private_key_id") == PLACEHOLDER_PRIVATE_KEY_ID:
            raise CredentialUnavailableError(self.name, "Service account key has placeholder values")

        try:
            credential = credentials.Certificate(info)
        except ValueError as e:
            raise CredentialUnavailableError(self.name, f"Invalid service account key: {e}")

        return credential, info.get("project_id")


class ApplicationDefaultProvider(CredentialProvider):
    """Ambient Google application default credentials."""

    name = "application_default"

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id

    def load(self) -> Tuple[credentials.Base, Optional[str]]:
        credential = credentials.ApplicationDefault()
        try:
            # ApplicationDefault resolves lazily; force it so a missing
            # environment fails here instead of on the first request.
            credential.get_credential()
        except DefaultCredentialsError as e:
            raise CredentialUnavailableError(self.name, str(e))

        return credential, self.project_id or credential.project_id


def default_providers(config: BaseConfig) -> List[CredentialProvider]:
    """Key file first, then ambient credentials."""
    return [
        ServiceAccountFileProvider(config.firebase_credentials_file),
        ApplicationDefaultProvider(config.firebase_project_id),
    ]


def initialize_identity_app(providers: Iterable[CredentialProvider]) -> Optional[firebase_admin.App]:
    """Initialize the default Firebase app from the first working provider."""
    try:
        app = firebase_admin.get_app()
        logger.info("Firebase Admin already initialized")
        return app
    except ValueError:
        pass

    for provider in providers:
        try:
            credential, project_id = provider.load()
        except CredentialUnavailableError as e:
            logger.info("Credential provider unavailable", provider=provider.name, reason=e.message)
            continue

        options = {"projectId": project_id} if project_id else None
        try:
            app = firebase_admin.initialize_app(credential, options)
        except ValueError as e:
            logger.warning("Firebase Admin initialization failed", provider=provider.name, error=str(e))
            continue

        logger.info("Firebase Admin initialized", provider=provider.name, project_id=project_id)
        return app

    logger.error(
        "Firebase Admin initialization failed; provide a service account key "
        "or application default credentials"
    )
    return None
