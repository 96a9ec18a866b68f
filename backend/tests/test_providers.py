"""Tests for the transcription adapter and model providers, with SDK clients mocked."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from recap.config import Settings
from recap.errors import ConfigurationError, UpstreamServiceError, is_transient_overload
from recap.services.providers import (
    AnthropicProvider,
    OpenAIProvider,
    build_extraction_provider,
    build_followup_provider,
)
from recap.services.transcription import TranscriptionAdapter
from recap.storage import AudioStorage


def _response(status: int, url: str) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", url))


def openai_status_error(status: int) -> openai.APIStatusError:
    return openai.APIStatusError(
        f"Error code: {status}",
        response=_response(status, "https://api.openai.com/v1/test"),
        body=None,
    )


def anthropic_status_error(status: int) -> anthropic.APIStatusError:
    return anthropic.APIStatusError(
        f"Error code: {status}",
        response=_response(status, "https://api.anthropic.com/v1/messages"),
        body=None,
    )


def openai_client(**create_kwargs) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    client.audio.transcriptions.create = AsyncMock(**create_kwargs)
    return client


class TestTranscriptionAdapter:
    @pytest.mark.asyncio
    async def test_transcribes_staged_file(self, tmp_path):
        storage = AudioStorage(tmp_path)
        stored = await storage.save(b"audio-bytes", "call.mp3")
        client = openai_client(return_value=SimpleNamespace(text="Hello everyone."))

        text = await TranscriptionAdapter(client, storage).transcribe(stored.reference)

        assert text == "Hello everyone."
        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"

    @pytest.mark.asyncio
    async def test_upstream_status_preserved(self, tmp_path):
        storage = AudioStorage(tmp_path)
        stored = await storage.save(b"audio-bytes", "call.mp3")
        client = openai_client(side_effect=openai_status_error(503))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await TranscriptionAdapter(client, storage).transcribe(stored.reference)

        assert exc_info.value.upstream_status == 503
        assert exc_info.value.provider == "openai"
        client.audio.transcriptions.create.assert_awaited_once()


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_json_mode_request(self):
        message = SimpleNamespace(content='{"summary": "ok"}')
        client = openai_client(return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)]))
        provider = OpenAIProvider(client, model_id="gpt-4o")

        reply = await provider.complete("prompt", json_mode=True, temperature=0.3)

        assert reply == '{"summary": "ok"}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_error_mapped(self):
        client = openai_client(side_effect=openai_status_error(500))
        with pytest.raises(UpstreamServiceError) as exc_info:
            await OpenAIProvider(client).complete("prompt")
        assert exc_info.value.upstream_status == 500
        assert not is_transient_overload(exc_info.value)


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        client = MagicMock()
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(
                content=[
                    SimpleNamespace(type="text", text="SUBJECT: Hi\n\n"),
                    SimpleNamespace(type="text", text="Body"),
                ]
            )
        )
        provider = AnthropicProvider(client, model_id="claude-sonnet-4.5")

        reply = await provider.complete("prompt", system_prompt="be brief")

        assert reply == "SUBJECT: Hi\n\nBody"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-sonnet-4-5-20250929"
        assert kwargs["system"] == "be brief"

    @pytest.mark.asyncio
    async def test_overload_is_transient(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=anthropic_status_error(529))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await AnthropicProvider(client).complete("prompt")

        assert exc_info.value.upstream_status == 529
        assert is_transient_overload(exc_info.value)


class TestProviderFactories:
    def test_missing_openai_key(self):
        with pytest.raises(ConfigurationError):
            build_extraction_provider(Settings(openai_api_key=None))

    def test_missing_anthropic_key(self):
        settings = Settings(openai_api_key="k", followup_provider="anthropic")
        with pytest.raises(ConfigurationError):
            build_followup_provider(settings)

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            build_followup_provider(Settings(openai_api_key="k", followup_provider="gemini"))

    def test_builds_configured_followup_provider(self):
        settings = Settings(anthropic_api_key="a-key", followup_provider="anthropic")
        provider = build_followup_provider(settings)
        assert isinstance(provider, AnthropicProvider)
        assert provider.model_id == "claude-sonnet-4.5"

    def test_extraction_provider_uses_configured_model(self):
        provider = build_extraction_provider(Settings(openai_api_key="k", extraction_model="gpt-4.1"))
        assert isinstance(provider, OpenAIProvider)
        assert provider.model_id == "gpt-4.1"
