"""Meetings API router: read, delete and follow-up email generation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import delete_meeting, get_db, get_meeting, list_meetings
from ..dependencies import FollowUpBuilder, get_followup_builder
from ..errors import NotFoundError
from ..models import FollowUpEmail, GenerateEmailRequest, MeetingOut, MeetingSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meetings", tags=["meetings"])


@router.get("", response_model=list[MeetingSummary])
async def list_all_meetings(
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    """List meetings, newest first."""
    meetings = await list_meetings(db, limit=limit)
    logger.info(f"Listing {len(meetings)} meetings")
    return [MeetingSummary.model_validate(m) for m in meetings]


@router.get("/{meeting_id}", response_model=MeetingOut)
async def get_meeting_detail(
    meeting_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a full meeting aggregate by ID."""
    meeting = await get_meeting(db, meeting_id)
    if not meeting:
        logger.warning(f"Meeting not found: {meeting_id}")
        raise NotFoundError(f"Meeting {meeting_id} not found")
    return MeetingOut.model_validate(meeting)


@router.delete("/{meeting_id}")
async def delete_meeting_endpoint(
    meeting_id: str,
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    """Delete a meeting together with all of its items."""
    if not await delete_meeting(db, meeting_id):
        raise NotFoundError(f"Meeting {meeting_id} not found")
    return {"status": "deleted", "id": meeting_id}


@router.post("/{meeting_id}/generate-email", response_model=FollowUpEmail)
async def generate_email(
    meeting_id: str,
    request: GenerateEmailRequest,
    build_generator: FollowUpBuilder = Depends(get_followup_builder),
    db: AsyncSession = Depends(get_db),
):
    """
    Generate a personalized follow-up email for one attendee.

    Transient model overloads are retried; any other failure returns 500.
    """
    if await get_meeting(db, meeting_id) is None:
        raise NotFoundError(f"Meeting {meeting_id} not found")

    try:
        generator = build_generator()
        return await generator.generate(db, meeting_id, request.attendee_name)
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error generating email for meeting {meeting_id}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to generate email"})
