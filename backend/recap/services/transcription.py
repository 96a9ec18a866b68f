"""Speech-to-text via the OpenAI audio transcription API."""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from ..constants import TRANSCRIPTION_MODEL
from ..storage import AudioStorage
from .providers.openai_provider import to_upstream_error

logger = logging.getLogger(__name__)


class TranscriptionAdapter:
    """Transcribes staged audio. Failures propagate; no retries here."""

    def __init__(
        self,
        client: AsyncOpenAI,
        storage: AudioStorage,
        model: str = TRANSCRIPTION_MODEL,
    ):
        self.client = client
        self.storage = storage
        self.model = model

    async def transcribe(self, reference: str) -> str:
        """
        Transcribe a staged audio file.

        Args:
            reference: Reference returned by AudioStorage.save()

        Returns:
            The full transcript as a single text blob

        Raises:
            UpstreamServiceError: On any non-success response, with the upstream status
        """
        path = self.storage.resolve(reference)
        logger.info(f"Starting transcription of {reference} with {self.model}")

        try:
            with path.open("rb") as audio:
                transcription = await self.client.audio.transcriptions.create(
                    file=audio,
                    model=self.model,
                )
        except openai.OpenAIError as e:
            logger.error(f"Transcription failed for {reference}: {e}")
            raise to_upstream_error(e, "transcription") from e

        text = transcription.text or ""
        logger.info(f"Transcription completed. Length: {len(text)}")
        return text
