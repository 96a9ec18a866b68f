"""Test doubles for upstream services."""

from __future__ import annotations

from typing import Optional, Union

from recap.errors import UpstreamServiceError
from recap.services.providers import ModelProvider

Reply = Union[str, BaseException]


class FakeProvider(ModelProvider):
    """Returns scripted replies in order; the last one repeats."""

    name = "fake"
    model_id = "fake-model"

    def __init__(self, *replies: Reply):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> str:
        self.calls.append({"prompt": prompt, "json_mode": json_mode, "temperature": temperature})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeTranscriber:
    def __init__(self, reply: Reply):
        self.reply = reply
        self.references: list[str] = []

    async def transcribe(self, reference: str) -> str:
        self.references.append(reference)
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))


def overloaded() -> UpstreamServiceError:
    return UpstreamServiceError("model overloaded", upstream_status=503, provider="fake")


def server_error() -> UpstreamServiceError:
    return UpstreamServiceError("internal error", upstream_status=500, provider="fake")
