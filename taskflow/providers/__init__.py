from taskflow.providers.base import BaseProvider
from taskflow.providers.anthropic_provider import AnthropicProvider
from taskflow.providers.openai_provider import OpenAIProvider
from taskflow.providers.groq_provider import GroqProvider


PROVIDER_CLASSES = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "groq": GroqProvider,
}


class ProviderConfigError(ValueError):
    """Raised when the configured provider is unknown or has no API key."""


def build_provider(name: str, api_key: str | None, timeout: float = 60.0) -> BaseProvider:
    provider_class = PROVIDER_CLASSES.get((name or "").lower())
    if provider_class is None:
        raise ProviderConfigError(f"Unsupported AI provider: {name}")
    if not api_key:
        raise ProviderConfigError(f"No API key configured for AI provider '{name}'")
    return provider_class(api_key=api_key, timeout=timeout)


__all__ = [
    "BaseProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "GroqProvider",
    "PROVIDER_CLASSES",
    "ProviderConfigError",
    "build_provider",
]
