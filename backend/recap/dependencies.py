"""FastAPI dependencies that assemble per-request service objects.

Routes receive builders rather than ready-made services so that request
input is validated before credentials are checked, and so tests can swap in
fakes with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .services.extraction import ExtractionEngine
from .services.followup import FollowUpGenerator
from .services.pipeline import IngestionPipeline
from .services.providers import (
    build_extraction_provider,
    build_followup_provider,
    build_openai_client,
)
from .services.transcription import TranscriptionAdapter
from .storage import AudioStorage

PipelineBuilder = Callable[[AsyncSession], IngestionPipeline]
FollowUpBuilder = Callable[[], FollowUpGenerator]


def build_ingestion_pipeline(settings: Settings, session: AsyncSession) -> IngestionPipeline:
    """
    Wire storage, transcription and extraction for one ingestion run.

    Raises:
        ConfigurationError: If OPENAI_API_KEY is missing (before any network call)
    """
    storage = AudioStorage(settings.upload_dir)
    transcriber = TranscriptionAdapter(
        build_openai_client(settings.require_openai_key()),
        storage,
        model=settings.transcription_model,
    )
    extractor = ExtractionEngine(build_extraction_provider(settings))
    return IngestionPipeline(storage, transcriber, extractor, session)


def build_followup_generator(settings: Settings) -> FollowUpGenerator:
    """
    Raises:
        ConfigurationError: If the follow-up provider's key is missing
    """
    return FollowUpGenerator(build_followup_provider(settings))


def get_pipeline_builder(settings: Settings = Depends(get_settings)) -> PipelineBuilder:
    return lambda session: build_ingestion_pipeline(settings, session)


def get_followup_builder(settings: Settings = Depends(get_settings)) -> FollowUpBuilder:
    return lambda: build_followup_generator(settings)
