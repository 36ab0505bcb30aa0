"""Abstract base class for LLM providers."""

import os
from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name used to label reasoning (e.g. 'Claude')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable read when no API key was passed in."""

    @property
    def supports_grounding(self) -> bool:
        """Whether ``complete(grounded=True)`` lets the model search the web."""
        return False

    def api_key(self) -> str:
        """Constructor key, else the environment variable."""
        key = self._api_key or os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        grounded: bool = False,
    ) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: User message.
            model: Override the provider's default model. None uses default.
            system: Optional system prompt.
            grounded: Enable web search grounding where supported; ignored
                by providers without it.
        """
