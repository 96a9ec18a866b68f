"""Personalized follow-up emails generated from a persisted meeting."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import FOLLOWUP_PROMPT, FOLLOWUP_TEMPERATURE
from ..database import FollowUpItem, Meeting, Task, get_meeting
from ..errors import NotFoundError, ParseError
from ..models import FollowUpEmail
from .providers import ModelProvider
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

# Tolerates Markdown emphasis or heading marks around the label: "**Subject:** Hi"
_SUBJECT_RE = re.compile(
    r"^[ \t]*[*#_]*[ \t]*SUBJECT[ \t]*:[ \t]*[*_]*[ \t]*(.*?)[ \t*_]*$",
    re.IGNORECASE | re.MULTILINE,
)


def owned_by(owner: Optional[str], attendee_name: str) -> bool:
    """Case-insensitive substring match: owner 'Jane R. Doe' matches 'jane'."""
    needle = attendee_name.strip().lower()
    if not owner or not needle:
        return False
    return needle in owner.lower()


def format_date(value: Optional[datetime]) -> str:
    """Render a date as M/D/YYYY."""
    if value is None:
        return "TBD"
    return f"{value.month}/{value.day}/{value.year}"


def _numbered(lines: Sequence[str], empty: str) -> str:
    if not lines:
        return empty
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


def build_followup_prompt(
    meeting: Meeting,
    attendee_name: str,
    tasks: Sequence[Task],
    follow_ups: Sequence[FollowUpItem],
) -> str:
    """Embed the attendee's own items plus shared decisions, deadlines and open questions."""
    return FOLLOWUP_PROMPT.format(
        attendee=attendee_name,
        meeting_name=meeting.name,
        meeting_date=format_date(meeting.created_at),
        summary=meeting.summary,
        tasks=_numbered(
            [f"{t.task} (Due: {format_date(t.due_date)})" for t in tasks],
            "No specific tasks assigned",
        ),
        follow_ups=_numbered([f.description for f in follow_ups], "No specific follow-ups"),
        decisions=_numbered([d.decision for d in meeting.decisions], "None"),
        deadlines=_numbered(
            [f"{d.description} - {format_date(d.due_date)}" for d in meeting.deadlines],
            "None",
        ),
        questions=_numbered(
            [q.question for q in meeting.questions if q.status == "Open"],
            "None",
        ),
    )


def parse_email_reply(text: str, meeting_name: str) -> tuple[str, str]:
    """
    Split a model reply into (subject, body).

    The first ``SUBJECT:`` line supplies the subject; it and one blank line
    right after it are removed from the body.

    Raises:
        ParseError: If the reply is empty
    """
    if not text or not text.strip():
        raise ParseError("Model returned an empty email")

    match = _SUBJECT_RE.search(text)
    if not match:
        return f"Follow-up: {meeting_name}", text.strip()

    subject = match.group(1).strip() or f"Follow-up: {meeting_name}"
    rest = text[match.end():]
    if rest.startswith("\n"):
        rest = rest[1:]
    rest = re.sub(r"^[ \t\r]*\n", "", rest, count=1)
    body = (text[: match.start()] + rest).strip()
    return subject, body


class FollowUpGenerator:
    """Generates a follow-up email for one attendee of a persisted meeting.

    Unlike extraction there is no degraded path: upstream failures are
    retried per the policy and then propagate.
    """

    def __init__(self, provider: ModelProvider, retry_policy: Optional[RetryPolicy] = None):
        self.provider = provider
        self.retry_policy = retry_policy or RetryPolicy()

    async def generate(
        self,
        session: AsyncSession,
        meeting_id: str,
        attendee_name: str,
    ) -> FollowUpEmail:
        meeting = await get_meeting(session, meeting_id)
        if meeting is None:
            raise NotFoundError(f"Meeting {meeting_id} not found")

        tasks = [t for t in meeting.tasks if owned_by(t.owner, attendee_name)]
        follow_ups = [f for f in meeting.follow_ups if owned_by(f.owner, attendee_name)]
        logger.info(
            f"Generating follow-up for {attendee_name} on meeting {meeting_id}: "
            f"{len(tasks)} tasks, {len(follow_ups)} follow-ups"
        )

        prompt = build_followup_prompt(meeting, attendee_name, tasks, follow_ups)
        reply = await self.retry_policy.call(
            self.provider.complete,
            prompt,
            temperature=FOLLOWUP_TEMPERATURE,
        )
        subject, body = parse_email_reply(reply, meeting.name)

        return FollowUpEmail(
            subject=subject,
            body=body,
            recipient=attendee_name,
            meeting_name=meeting.name,
            date=format_date(meeting.created_at),
        )
