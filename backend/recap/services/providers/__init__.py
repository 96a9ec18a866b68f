"""Model provider adapters.

Thin wrappers around LLM APIs (OpenAI, Anthropic) with a unified
single-turn completion interface and normalized upstream errors.
Providers are built per invocation from Settings; there is no global client.
"""

from ...config import Settings
from ...errors import ConfigurationError
from .anthropic_provider import AnthropicProvider, build_anthropic_client
from .base import ModelProvider
from .openai_provider import OpenAIProvider, build_openai_client

__all__ = [
    # Base classes
    "ModelProvider",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    # Factories
    "build_openai_client",
    "build_anthropic_client",
    "build_extraction_provider",
    "build_followup_provider",
]


def build_extraction_provider(settings: Settings) -> ModelProvider:
    """Provider used for structured extraction (always OpenAI JSON mode)."""
    client = build_openai_client(settings.require_openai_key())
    return OpenAIProvider(client, model_id=settings.extraction_model)


def build_followup_provider(settings: Settings) -> ModelProvider:
    """Provider used for follow-up emails, chosen by FOLLOWUP_PROVIDER.

    Raises:
        ConfigurationError: If the provider is unknown or its key is missing
    """
    api_key = settings.require_followup_key()
    model_id = settings.resolved_followup_model

    if settings.followup_provider == "openai":
        return OpenAIProvider(build_openai_client(api_key), model_id=model_id)
    if settings.followup_provider == "anthropic":
        return AnthropicProvider(build_anthropic_client(api_key), model_id=model_id)
    raise ConfigurationError(f"Unknown FOLLOWUP_PROVIDER: {settings.followup_provider}")
