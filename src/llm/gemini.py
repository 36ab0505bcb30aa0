"""Google Gemini LLM provider (google-genai SDK)."""

import logging

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """LLM provider using the Google Gemini API, with Google Search grounding."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def display_name(self) -> str:
        return "Gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    @property
    def supports_grounding(self) -> bool:
        return True

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
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for Gemini scoring. "
                "Install with: pip install google-genai"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model
        tools = (
            [genai_types.Tool(google_search=genai_types.GoogleSearch())] if grounded else None
        )

        logger.debug("Sending prompt to Gemini API (%s, grounded=%s)...", use_model, grounded)
        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                tools=tools,
            ),
        )

        return response.text or ""
