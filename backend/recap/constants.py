"""Constants and prompt templates used across the Recap backend."""

from __future__ import annotations

from typing import Final

TRANSCRIPTION_MODEL: Final[str] = "whisper-1"
EXTRACTION_MODEL: Final[str] = "gpt-4o"
FOLLOWUP_MODELS: Final[dict[str, str]] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4.5",
}

EXTRACTION_TEMPERATURE: Final[float] = 0.3
FOLLOWUP_TEMPERATURE: Final[float] = 0.7

# Follow-up retry policy on transient overload
FOLLOWUP_MAX_ATTEMPTS: Final[int] = 3
FOLLOWUP_RETRY_DELAY_SECONDS: Final[float] = 2.0

# Degraded fallback record: transcript prefix lengths
FALLBACK_DESCRIPTION_CHARS: Final[int] = 200
FALLBACK_SUMMARY_CHARS: Final[int] = 1000

DEFAULT_DESCRIPTION: Final[str] = "No description provided."
UNASSIGNED: Final[str] = "Unassigned"

QUESTION_STATUSES: Final[tuple[str, ...]] = ("Open", "Answered", "Unanswered")

EXTRACTION_PROMPT: Final[str] = """Analyze the following meeting transcript and extract structured information.

Return ONLY a single JSON object, with no markdown, code fences or commentary, using exactly these keys:
- "meeting_name": a short descriptive title (string)
- "description": a one or two sentence description (string)
- "summary": a detailed summary of the meeting (string)
- "tasks": array of {{"description": string, "owner": string, "due_date": string or null}}
- "decisions": array of {{"description": string, "date": string or null}}
- "questions": array of {{"question": string, "status": "Open" | "Answered" | "Unanswered", "answer": string or null}}
- "insights": array of {{"insight": string, "reference": string}}
- "deadlines": array of {{"description": string, "date": string or null}}
- "attendees": array of {{"name": string, "role": string}}
- "follow_ups": array of {{"description": string, "owner": string}}
- "risks": array of {{"risk": string, "impact": string}}
- "agenda": array of strings

Use ISO 8601 dates (YYYY-MM-DD) whenever a date can be determined, otherwise null.
Use "Unassigned" when no owner is mentioned. Use empty arrays when a category has no entries.

Transcript:
{transcript}"""

FOLLOWUP_PROMPT: Final[str] = """Generate a professional follow-up email for {attendee} based on this meeting:

Meeting: {meeting_name}
Date: {meeting_date}
Summary: {summary}

{attendee}'s Action Items:
{tasks}

{attendee}'s Follow-ups:
{follow_ups}

Key Decisions Made:
{decisions}

Upcoming Deadlines:
{deadlines}

Important Questions:
{questions}

Generate a personalized, professional email with:
1. Subject line
2. Friendly greeting
3. Brief meeting recap
4. Their specific action items with deadlines
5. Any relevant decisions or context they need
6. Professional closing

Make it concise, actionable, and professional. Format as:
SUBJECT: [subject line]

[email body]
"""
