"""OAuth credentials and API service construction for Google Workspace APIs."""

import logging
from typing import Any

from src.core import secrets
from src.core.secrets import SecretStore

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"

SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/documents.readonly",
)


def build_credentials(store: SecretStore) -> Any:
    """User OAuth credentials from the client id/secret and refresh token secrets."""
    try:
        from google.oauth2.credentials import Credentials
    except ImportError:
        msg = (
            "google-auth is required for Google API access. "
            "Install with: pip install google-auth"
        )
        raise ImportError(msg) from None

    return Credentials(
        token=None,
        refresh_token=store.get(secrets.REFRESH_TOKEN),
        client_id=store.get(secrets.CLIENT_ID),
        client_secret=store.get(secrets.CLIENT_SECRET),
        token_uri=TOKEN_URI,
        scopes=list(SCOPES),
    )


def build_service(api: str, version: str, credentials: Any) -> Any:
    """Discovery-based API client (``gmail``/``v1``, ``sheets``/``v4``, ...)."""
    try:
        from googleapiclient.discovery import build
    except ImportError:
        msg = (
            "google-api-python-client is required for Google API access. "
            "Install with: pip install google-api-python-client"
        )
        raise ImportError(msg) from None

    logger.debug("Building %s %s client", api, version)
    return build(api, version, credentials=credentials, cache_discovery=False)
