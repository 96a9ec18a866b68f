"""Maps canonical meeting records onto the relational aggregate."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import (
    AgendaItem,
    Attendee,
    Deadline,
    Decision,
    FollowUpItem,
    Insight,
    Meeting,
    Question,
    Risk,
    Task,
    create_meeting,
)
from ..models import MeetingRecord
from .extraction import normalize_record

logger = logging.getLogger(__name__)


def record_to_meeting(
    record: Union[MeetingRecord, Mapping[str, Any]],
    raw_transcript: str,
    file_name: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Meeting:
    """
    Build an unsaved Meeting with all child rows from a canonical record.

    A plain mapping is normalized first, which drops any entry that is not a
    well-formed object. Decisions without a date take the creation time.
    """
    if not isinstance(record, MeetingRecord):
        record = normalize_record(record)
    created_at = created_at or datetime.now(timezone.utc)

    return Meeting(
        name=record.meeting_name,
        description=record.description,
        raw_transcript=raw_transcript,
        summary=record.summary,
        file_name=file_name,
        created_at=created_at,
        tasks=[
            Task(task=t.description, owner=t.owner, due_date=t.due_date) for t in record.tasks
        ],
        decisions=[
            Decision(decision=d.description, date=d.date or created_at) for d in record.decisions
        ],
        questions=[
            Question(question=q.question, status=q.status, answer=q.answer)
            for q in record.questions
        ],
        insights=[Insight(insight=i.insight, reference=i.reference) for i in record.insights],
        deadlines=[
            Deadline(description=d.description, due_date=d.due_date) for d in record.deadlines
        ],
        attendees=[Attendee(name=a.name, role=a.role) for a in record.attendees],
        follow_ups=[
            FollowUpItem(description=f.description, owner=f.owner) for f in record.follow_ups
        ],
        risks=[Risk(risk=r.risk, impact=r.impact) for r in record.risks],
        agenda=[AgendaItem(item=a.item) for a in record.agenda],
    )


async def persist_record(
    session: AsyncSession,
    record: Union[MeetingRecord, Mapping[str, Any]],
    raw_transcript: str,
    file_name: Optional[str] = None,
) -> Meeting:
    """Write the full aggregate atomically and return it with generated IDs."""
    meeting = record_to_meeting(record, raw_transcript, file_name=file_name)
    return await create_meeting(session, meeting)
