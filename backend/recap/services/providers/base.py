"""Base class for language model providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class ModelProvider(ABC):
    """Base class for all model providers.

    Each provider implements a thin wrapper around a specific LLM API,
    returning the reply text and normalizing failures to UpstreamServiceError.
    """

    name: str  # e.g., "openai", "anthropic"
    model_id: str  # e.g., "gpt-4o", "claude-sonnet-4.5"

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> str:
        """Send a single-turn prompt and return the reply text.

        Args:
            prompt: User message content
            system_prompt: Optional system prompt to prepend
            json_mode: Ask the API to constrain output to a JSON object, where supported
            temperature: Sampling temperature, provider default when None
            **kwargs: Provider-specific options

        Raises:
            UpstreamServiceError: On any non-success response or transport failure
        """
        pass
