"""Anthropic provider for Claude models."""

from __future__ import annotations

import logging
from typing import Optional

import anthropic

from ...errors import UpstreamServiceError
from .base import ModelProvider

logger = logging.getLogger(__name__)


def build_anthropic_client(api_key: str) -> anthropic.AsyncAnthropic:
    """Create a client for one pipeline invocation, with SDK retries disabled."""
    return anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)


class AnthropicProvider(ModelProvider):
    """Provider for Anthropic Claude models.

    Anthropic reports overload as HTTP 529, which the follow-up retry
    policy treats as transient.
    """

    name = "anthropic"
    model_id = "claude-sonnet-4.5"

    # Map friendly names to API model IDs
    MODEL_MAP = {
        "claude-sonnet-4.5": "claude-sonnet-4-5-20250929",
        "claude-opus-4.5": "claude-opus-4-5-20251101",
    }

    def __init__(self, client: anthropic.AsyncAnthropic, model_id: str = "claude-sonnet-4.5"):
        self.model_id = model_id
        self._api_model = self.MODEL_MAP.get(model_id, model_id)
        self.client = client

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> str:
        """Claude has no JSON response mode; json_mode is left to the prompt."""
        request_params = {
            "model": self._api_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": kwargs.get("max_tokens", 4096),
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if temperature is not None:
            request_params["temperature"] = temperature

        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AnthropicError as e:
            logger.error(f"Anthropic completion error: {e}")
            raise UpstreamServiceError(
                f"Anthropic completion failed: {e}",
                upstream_status=getattr(e, "status_code", None),
                provider="anthropic",
            ) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
