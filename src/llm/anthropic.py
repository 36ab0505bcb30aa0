"""Anthropic Claude LLM provider."""

import logging

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_MAX_TOKENS = 1024


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic Claude API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def display_name(self) -> str:
        return "Claude"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

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
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for Claude scoring. "
                "Install with: pip install anthropic"
            )
            raise ImportError(msg) from None

        client = anthropic.Anthropic(api_key=api_key)
        use_model = model or self.default_model

        logger.debug("Sending prompt to Anthropic API (%s)...", use_model)
        kwargs: dict[str, object] = {}
        if system is not None:
            kwargs["system"] = system
        message = client.messages.create(
            model=use_model,
            max_tokens=_MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        texts = [block.text for block in message.content if block.type == "text"]
        return texts[0] if texts else ""
