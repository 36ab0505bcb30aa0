"""Secret lookup: Google Secret Manager or environment variables.

Stores are plain objects passed to whoever needs them; there is no
module-level client.
"""

import logging
import os
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Secret names shared by every client
CLIENT_ID = "linkedin-job-alert-client-id"
CLIENT_SECRET = "linkedin-job-alert-client-secret"
REFRESH_TOKEN = "linkedin-job-alert-refresh-token"
GEMINI_API_KEY = "linkedin-job-alert-gemini-api-key"
CLAUDE_API_KEY = "linkedin-job-alert-claude-api-key"
OPENAI_API_KEY = "linkedin-job-alert-openai-api-key"

# Which secret holds the API key for each LLM provider
PROVIDER_SECRETS: dict[str, str] = {
    "gemini": GEMINI_API_KEY,
    "anthropic": CLAUDE_API_KEY,
    "openai": OPENAI_API_KEY,
}


@runtime_checkable
class SecretStore(Protocol):
    """Anything that can resolve a secret name to its value."""

    def get(self, name: str) -> str: ...


def decode_payload(name: str, payload: str | bytes | None) -> str:
    """Normalize a secret payload to str, rejecting empty payloads."""
    if not payload:
        msg = f"Secret {name} has no payload"
        raise ValueError(msg)
    if isinstance(payload, bytes):
        return payload.decode("utf-8")
    return payload


class SecretManagerStore:
    """Reads the latest version of secrets from Google Secret Manager."""

    def __init__(self, project_id: str, client: object | None = None) -> None:
        self._project_id = project_id
        self._client = client
        self._cache: dict[str, str] = {}

    def _get_client(self) -> object:
        if self._client is None:
            try:
                from google.cloud import secretmanager
            except ImportError:
                msg = (
                    "google-cloud-secret-manager is required for Secret Manager access. "
                    "Install with: pip install google-cloud-secret-manager"
                )
                raise ImportError(msg) from None
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]
        client = self._get_client()
        path = f"projects/{self._project_id}/secrets/{name}/versions/latest"
        response = client.access_secret_version(name=path)  # type: ignore[attr-defined]
        payload = response.payload.data if response.payload else None
        value = decode_payload(name, payload)
        self._cache[name] = value
        logger.debug("Loaded secret %s", name)
        return value


class EnvSecretStore:
    """Resolves secrets from environment variables.

    ``linkedin-job-alert-gemini-api-key`` is looked up as
    ``LINKEDIN_JOB_ALERT_GEMINI_API_KEY``.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._env = os.environ if environ is None else environ

    @staticmethod
    def env_name(name: str) -> str:
        return name.upper().replace("-", "_")

    def get(self, name: str) -> str:
        return decode_payload(name, self._env.get(self.env_name(name)))
