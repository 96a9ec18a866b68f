"""Audio upload endpoint running the ingestion pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import PipelineBuilder, get_pipeline_builder
from ..errors import RecapError
from ..models import MeetingOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcribe"])


@router.post("/transcribe", response_model=MeetingOut)
async def transcribe(
    audio: Optional[UploadFile] = File(None),
    full_path: Optional[str] = Form(None, alias="fullPath"),
    build_pipeline: PipelineBuilder = Depends(get_pipeline_builder),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a meeting recording and turn it into a persisted meeting.

    Returns the full meeting aggregate. When structured extraction fails the
    meeting is still saved, with empty collections and a transcript-derived summary.
    """
    logger.info("Received POST request to /api/transcribe")
    if audio is None:
        logger.error("No audio file provided")
        return JSONResponse(status_code=400, content={"error": "No audio file provided."})

    filename = audio.filename or full_path or "audio"
    logger.info(f"Received file: {filename} (full path: {full_path})")

    try:
        data = await audio.read()
        pipeline = build_pipeline(db)
        result = await pipeline.run(data, filename)
    except RecapError:
        raise
    except Exception as e:
        logger.error(f"Error in /api/transcribe: {e}", exc_info=True)
        return JSONResponse(
            status_code=500, content={"error": "An error occurred during processing."}
        )

    if result.degraded:
        logger.warning(f"Meeting {result.meeting.id} saved from transcript only: {result.fallback_reason}")
    return MeetingOut.model_validate(result.meeting)
