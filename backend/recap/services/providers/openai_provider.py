"""OpenAI provider for GPT models."""

from __future__ import annotations

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from ...errors import UpstreamServiceError
from .base import ModelProvider

logger = logging.getLogger(__name__)


def build_openai_client(api_key: str) -> AsyncOpenAI:
    """Create a client for one pipeline invocation.

    SDK-level retries are disabled; retry decisions belong to the callers.
    """
    return AsyncOpenAI(api_key=api_key, max_retries=0)


def to_upstream_error(error: openai.OpenAIError, what: str) -> UpstreamServiceError:
    """Convert an OpenAI SDK error, preserving the HTTP status when present."""
    status = getattr(error, "status_code", None)
    return UpstreamServiceError(f"OpenAI {what} failed: {error}", upstream_status=status, provider="openai")


class OpenAIProvider(ModelProvider):
    """Provider for OpenAI chat completion models."""

    name = "openai"
    model_id = "gpt-4o"

    def __init__(self, client: AsyncOpenAI, model_id: str = "gpt-4o"):
        self.model_id = model_id
        self.client = client

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        # Build request parameters
        request_params = {
            "model": self.model_id,
            "messages": messages,
        }
        if json_mode:
            request_params["response_format"] = {"type": "json_object"}
        if temperature is not None:
            request_params["temperature"] = temperature
        if "max_tokens" in kwargs:
            request_params["max_tokens"] = kwargs["max_tokens"]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.OpenAIError as e:
            logger.error(f"OpenAI completion error: {e}")
            raise to_upstream_error(e, "completion") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
