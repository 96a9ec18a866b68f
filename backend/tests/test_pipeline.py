"""Tests for the end-to-end ingestion pipeline with upstream services faked."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recap.database import Meeting
from recap.errors import UpstreamServiceError, ValidationError
from recap.services.extraction import ExtractionEngine
from recap.services.pipeline import IngestionPipeline, IngestionState
from recap.storage import AudioStorage

from .conftest import BOB_EXTRACTION, BOB_TRANSCRIPT
from .fakes import FakeProvider, FakeTranscriber, server_error


def make_pipeline(tmp_path, session, transcript, *replies) -> IngestionPipeline:
    return IngestionPipeline(
        AudioStorage(tmp_path / "uploads"),
        FakeTranscriber(transcript),
        ExtractionEngine(FakeProvider(*replies)),
        session,
    )


async def _meeting_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Meeting))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_extracted_meeting_persisted(tmp_path, test_session: AsyncSession):
    pipeline = make_pipeline(tmp_path, test_session, BOB_TRANSCRIPT, BOB_EXTRACTION)

    result = await pipeline.run(b"fake-audio", "launch-sync.mp3")

    assert result.state is IngestionState.PERSISTED
    assert not result.degraded
    meeting = result.meeting
    assert meeting.name == "Launch sync"
    assert meeting.raw_transcript == BOB_TRANSCRIPT
    assert len(meeting.decisions) == 1
    assert len(meeting.tasks) == 1
    assert meeting.tasks[0].owner == "Bob"
    assert meeting.tasks[0].due_date is not None
    assert meeting.file_name.endswith("-launch-sync.mp3")


@pytest.mark.asyncio
async def test_extraction_failure_persists_fallback(tmp_path, test_session: AsyncSession):
    transcript = "Quarterly numbers look good. " * 20
    pipeline = make_pipeline(tmp_path, test_session, transcript, server_error())

    result = await pipeline.run(b"fake-audio", "q3-review.m4a")

    assert result.state is IngestionState.FALLBACK_PERSISTED
    assert result.degraded
    assert "upstream" in result.fallback_reason
    meeting = result.meeting
    assert meeting.name == "q3-review"
    assert meeting.raw_transcript == transcript
    assert meeting.description.startswith("Quarterly numbers look good.")
    assert meeting.summary == transcript.strip()
    for collection in (
        meeting.tasks,
        meeting.decisions,
        meeting.questions,
        meeting.insights,
        meeting.deadlines,
        meeting.attendees,
        meeting.follow_ups,
        meeting.risks,
        meeting.agenda,
    ):
        assert collection == []


@pytest.mark.asyncio
async def test_unparseable_output_persists_fallback(tmp_path, test_session: AsyncSession):
    pipeline = make_pipeline(tmp_path, test_session, BOB_TRANSCRIPT, "not json at all")

    result = await pipeline.run(b"fake-audio", "sync.mp3")

    assert result.state is IngestionState.FALLBACK_PERSISTED
    assert result.meeting.description == BOB_TRANSCRIPT


@pytest.mark.asyncio
async def test_transcription_failure_propagates(tmp_path, test_session: AsyncSession):
    error = UpstreamServiceError("whisper down", upstream_status=502, provider="openai")
    pipeline = make_pipeline(tmp_path, test_session, error, BOB_EXTRACTION)

    with pytest.raises(UpstreamServiceError):
        await pipeline.run(b"fake-audio", "sync.mp3")

    assert await _meeting_count(test_session) == 0


@pytest.mark.asyncio
async def test_empty_upload_fails_before_transcription(tmp_path, test_session: AsyncSession):
    transcriber = FakeTranscriber(BOB_TRANSCRIPT)
    pipeline = IngestionPipeline(
        AudioStorage(tmp_path),
        transcriber,
        ExtractionEngine(FakeProvider(BOB_EXTRACTION)),
        test_session,
    )

    with pytest.raises(ValidationError):
        await pipeline.run(b"", "sync.mp3")

    assert transcriber.references == []
