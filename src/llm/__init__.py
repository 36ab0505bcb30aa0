"""LLM provider registry with lazy loading.

Usage:
    from src.llm import get_provider

    provider = get_provider("gemini", api_key=key)
    raw = provider.complete(prompt, grounded=provider.supports_grounding)
"""

import importlib

from src.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider"]

# Lazy registry: maps provider name to (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("src.llm.anthropic", "AnthropicProvider"),
    "gemini": ("src.llm.gemini", "GeminiProvider"),
    "openai": ("src.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str, api_key: str | None = None) -> LLMProvider:
    """Instantiate an LLM provider by name.

    Args:
        name: Provider identifier (anthropic, gemini, openai).
        api_key: API key; None falls back to the provider's env var.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(api_key=api_key)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
