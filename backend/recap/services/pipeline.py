"""Audio ingestion: stage, transcribe, extract, persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Meeting
from ..storage import AudioStorage
from .extraction import ExtractionEngine, FallbackNeeded, build_fallback_record
from .persistence import persist_record
from .transcription import TranscriptionAdapter

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    RECEIVED = "received"
    STORED = "stored"
    TRANSCRIBED = "transcribed"
    EXTRACTED = "extracted"
    EXTRACTION_FAILED = "extraction_failed"
    PERSISTED = "persisted"
    FALLBACK_PERSISTED = "fallback_persisted"
    FAILED = "failed"


@dataclass
class IngestionResult:
    meeting: Meeting
    state: IngestionState
    fallback_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.state is IngestionState.FALLBACK_PERSISTED


class IngestionPipeline:
    """
    One pass from uploaded audio to a persisted meeting aggregate.

    Extraction failure is a normal terminal outcome (a fallback meeting is
    persisted). Storage, transcription and persistence errors propagate.
    """

    def __init__(
        self,
        storage: AudioStorage,
        transcriber: TranscriptionAdapter,
        extractor: ExtractionEngine,
        session: AsyncSession,
    ):
        self.storage = storage
        self.transcriber = transcriber
        self.extractor = extractor
        self.session = session

    async def run(self, data: bytes, filename: str) -> IngestionResult:
        state = IngestionState.RECEIVED
        logger.info(f"[{state.value}] {filename} ({len(data)} bytes)")

        try:
            stored = await self.storage.save(data, filename)
            state = IngestionState.STORED
            logger.info(f"[{state.value}] {stored.reference}")

            transcript = await self.transcriber.transcribe(stored.reference)
            state = IngestionState.TRANSCRIBED
            logger.info(f"[{state.value}] {len(transcript)} characters")

            outcome = await self.extractor.extract(transcript)
            if isinstance(outcome, FallbackNeeded):
                logger.warning(f"[{IngestionState.EXTRACTION_FAILED.value}] {outcome.reason}")
                record = build_fallback_record(transcript, stored.original_name)
                meeting = await persist_record(
                    self.session, record, transcript, file_name=stored.reference
                )
                result = IngestionResult(
                    meeting=meeting,
                    state=IngestionState.FALLBACK_PERSISTED,
                    fallback_reason=outcome.reason,
                )
            else:
                logger.info(f"[{IngestionState.EXTRACTED.value}] {outcome.record.meeting_name}")
                meeting = await persist_record(
                    self.session, outcome.record, transcript, file_name=stored.reference
                )
                result = IngestionResult(meeting=meeting, state=IngestionState.PERSISTED)
        except Exception:
            logger.error(
                f"[{IngestionState.FAILED.value}] ingestion of {filename} failed after {state.value}",
                exc_info=True,
            )
            raise

        logger.info(f"[{result.state.value}] meeting {result.meeting.id}")
        return result
