"""OpenAI LLM provider."""

import logging

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def display_name(self) -> str:
        return "OpenAI"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        grounded: bool = False,
    ) -> str:
        api_key = self.api_key()

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for OpenAI scoring. "
                "Install with: pip install 'linkedin-job-alerts[openai]'"
            )
            raise ImportError(msg) from None

        client = openai.OpenAI(api_key=api_key)
        use_model = model or self.default_model

        messages = [{"role": "user", "content": prompt}]
        if system is not None:
            messages.insert(0, {"role": "system", "content": system})

        logger.debug("Sending prompt to OpenAI API (%s)...", use_model)
        response = client.chat.completions.create(model=use_model, messages=messages)

        return response.choices[0].message.content or ""
