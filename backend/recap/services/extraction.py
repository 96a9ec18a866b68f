"""Structured extraction of meeting facts from a raw transcript.

The language model is asked for a JSON object, but its output is treated as
untrusted: code fences and trailing commentary are tolerated, key spellings
are normalized, and malformed entries are dropped. When no usable record can
be produced the engine returns ``FallbackNeeded`` instead of raising, so the
ingestion pipeline can persist a degraded meeting.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import pydantic

from ..constants import (
    DEFAULT_DESCRIPTION,
    EXTRACTION_PROMPT,
    EXTRACTION_TEMPERATURE,
    FALLBACK_DESCRIPTION_CHARS,
    FALLBACK_SUMMARY_CHARS,
    QUESTION_STATUSES,
    UNASSIGNED,
)
from ..errors import ParseError, UpstreamServiceError
from ..models import (
    AgendaRecord,
    AttendeeRecord,
    DeadlineRecord,
    DecisionRecord,
    FollowUpRecord,
    InsightRecord,
    MeetingRecord,
    QuestionRecord,
    RiskRecord,
    TaskRecord,
)
from .providers import ModelProvider

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)
_KEY_RE = re.compile(r"[^a-z0-9]")

DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)

QUESTION_STATUS_ALIASES = {
    **{status.lower(): status for status in QUESTION_STATUSES},
    "resolved": "Answered",
    "closed": "Answered",
}


@dataclass(frozen=True)
class Extracted:
    record: MeetingRecord


@dataclass(frozen=True)
class FallbackNeeded:
    reason: str


ExtractionResult = Union[Extracted, FallbackNeeded]


def build_extraction_prompt(transcript: str) -> str:
    return EXTRACTION_PROMPT.format(transcript=transcript)


# ---------------------------------------------------------------------------
# Resilient JSON recovery
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Return the contents of the first Markdown code fence, or the text itself."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in text, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"Malformed JSON in model reply: {e}") from e


def parse_model_json(text: str) -> dict:
    """
    Recover a JSON object from a model reply.

    Handles bare JSON, JSON wrapped in Markdown code fences, and JSON
    surrounded by prose. Candidates are tried in order: the first fence's
    contents, the first balanced object inside it, then the first balanced
    object anywhere in the reply.

    Raises:
        ParseError: If no JSON object can be recovered
    """
    if not text or not text.strip():
        raise ParseError("Model returned an empty reply")

    fenced = strip_code_fences(text)
    candidates = [fenced, find_json_object(fenced)]
    if fenced != text.strip():
        candidates.append(find_json_object(text))

    error = ParseError("No JSON object found in model reply")
    for candidate in candidates:
        if candidate is None:
            continue
        try:
            data = _decode(candidate)
        except ParseError as e:
            error = e
            continue
        if isinstance(data, dict):
            return data
        error = ParseError(f"Expected a JSON object, got {type(data).__name__}")
    raise error


# ---------------------------------------------------------------------------
# Field normalization
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a model-supplied date into an aware datetime.

    Returns None for anything unparseable; the literal string is never kept.
    Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _compact(key: str) -> str:
    """Fold a key so that 'Follow-ups', 'followUps' and 'follow_ups' compare equal."""
    return _KEY_RE.sub("", key.lower())


class _Fields:
    """Case and punctuation insensitive view over one JSON object."""

    def __init__(self, data: Mapping[str, Any]):
        self._data: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(key, str):
                self._data.setdefault(_compact(key), value)

    def get(self, *aliases: str) -> Any:
        for alias in aliases:
            value = self._data.get(alias)
            if value is not None:
                return value
        return None

    def text(self, *aliases: str, default: str = "") -> str:
        return _text(self.get(*aliases), default)

    def optional_text(self, *aliases: str) -> Optional[str]:
        value = _text(self.get(*aliases), "")
        return value or None

    def date(self, *aliases: str) -> Optional[datetime]:
        return parse_date(self.get(*aliases))

    def entries(self, *aliases: str) -> list:
        value = self.get(*aliases)
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            return [value]
        return []


def _text(value: Any, default: str) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _normalize_question_status(value: Any) -> str:
    if isinstance(value, str):
        return QUESTION_STATUS_ALIASES.get(value.strip().lower(), "Unanswered")
    return "Unanswered"


def _task(f: _Fields) -> TaskRecord:
    return TaskRecord(
        description=f.text("description", "task", "title", default="No task description"),
        owner=f.text("owner", "assignee", "assignedto", default=UNASSIGNED),
        due_date=f.date("duedate", "due", "deadline", "date"),
    )


def _decision(f: _Fields) -> DecisionRecord:
    return DecisionRecord(
        description=f.text("description", "decision", default="No decision description"),
        date=f.date("date", "decisiondate"),
    )


def _question(f: _Fields) -> QuestionRecord:
    return QuestionRecord(
        question=f.text("question", "text", default="No question"),
        status=_normalize_question_status(f.get("status")),
        answer=f.optional_text("answer"),
    )


def _insight(f: _Fields) -> InsightRecord:
    return InsightRecord(
        insight=f.text("insight", "description", "text", default="No insight"),
        reference=f.text("reference", "source"),
    )


def _deadline(f: _Fields) -> DeadlineRecord:
    return DeadlineRecord(
        description=f.text("description", "deadline", "task", default="No deadline description"),
        due_date=f.date("duedate", "date", "due"),
    )


def _attendee(f: _Fields) -> AttendeeRecord:
    return AttendeeRecord(
        name=f.text("name", "attendee", default="Unnamed Attendee"),
        role=f.text("role", "title", default="No role specified"),
    )


def _follow_up(f: _Fields) -> FollowUpRecord:
    return FollowUpRecord(
        description=f.text("description", "followup", "task", default="No follow-up description"),
        owner=f.text("owner", "assignee", "assignedto", default=UNASSIGNED),
    )


def _risk(f: _Fields) -> RiskRecord:
    return RiskRecord(
        risk=f.text("risk", "description", default="No risk description"),
        impact=f.text("impact", default="No impact specified"),
    )


def _objects(entries: list, build: Callable[[_Fields], Any]) -> list:
    """Build one record per JSON object entry; anything else is dropped."""
    return [build(_Fields(entry)) for entry in entries if isinstance(entry, dict)]


def _agenda(entries: list) -> list[AgendaRecord]:
    items = []
    for entry in entries:
        if isinstance(entry, dict):
            entry = _Fields(entry).get("item", "topic", "title")
        text = _text(entry, "") if isinstance(entry, str) else ""
        if text:
            items.append(AgendaRecord(item=text))
    return items


def placeholder_meeting_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Meeting {now:%Y-%m-%d %H:%M}"


def normalize_record(data: Mapping[str, Any]) -> MeetingRecord:
    """
    Map a model-produced JSON object onto the canonical MeetingRecord.

    Accepts any casing or punctuation of the known keys (``due_date`` and
    ``dueDate``, ``Follow-ups`` and ``followUps``). Non-object entries are
    dropped, missing arrays become empty, and missing scalars take defaults.
    Normalizing an already-canonical record returns an equal record.
    """
    f = _Fields(data)
    return MeetingRecord(
        meeting_name=f.text("meetingname", "name", "title", "meetingtitle")
        or placeholder_meeting_name(),
        description=f.text("description", "meetingdescription", default=DEFAULT_DESCRIPTION),
        summary=f.text("summary", "meetingsummary"),
        tasks=_objects(f.entries("tasks", "actionitems"), _task),
        decisions=_objects(f.entries("decisions"), _decision),
        questions=_objects(f.entries("questions", "openquestions"), _question),
        insights=_objects(f.entries("insights"), _insight),
        deadlines=_objects(f.entries("deadlines"), _deadline),
        attendees=_objects(f.entries("attendees", "participants"), _attendee),
        follow_ups=_objects(f.entries("followups", "followupitems"), _follow_up),
        risks=_objects(f.entries("risks"), _risk),
        agenda=_agenda(f.entries("agenda", "agendaitems")),
    )


# ---------------------------------------------------------------------------
# Degraded fallback
# ---------------------------------------------------------------------------


def _prefix(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def build_fallback_record(transcript: str, filename: Optional[str] = None) -> MeetingRecord:
    """Minimal record derived from the raw transcript alone; every collection empty."""
    stem = Path(filename).stem.strip() if filename else ""
    return MeetingRecord(
        meeting_name=stem or placeholder_meeting_name(),
        description=_prefix(transcript, FALLBACK_DESCRIPTION_CHARS) or DEFAULT_DESCRIPTION,
        summary=_prefix(transcript, FALLBACK_SUMMARY_CHARS),
    )


class ExtractionEngine:
    """Turns raw transcript text into a canonical MeetingRecord via one model call."""

    def __init__(self, provider: ModelProvider):
        self.provider = provider

    async def extract(self, transcript: str) -> ExtractionResult:
        """
        Extract structured meeting facts.

        Upstream failures and unparseable output yield FallbackNeeded; any
        other exception propagates.
        """
        if not transcript.strip():
            return FallbackNeeded(reason="empty transcript")

        prompt = build_extraction_prompt(transcript)
        try:
            reply = await self.provider.complete(
                prompt,
                json_mode=True,
                temperature=EXTRACTION_TEMPERATURE,
            )
            data = parse_model_json(reply)
            record = normalize_record(data)
        except UpstreamServiceError as e:
            logger.warning(f"Extraction call failed, falling back: {e}")
            return FallbackNeeded(reason=f"upstream error: {e}")
        except ParseError as e:
            logger.warning(f"Extraction output unparseable, falling back: {e}")
            return FallbackNeeded(reason=f"parse error: {e}")
        except pydantic.ValidationError as e:
            logger.warning(f"Extraction output failed validation, falling back: {e}")
            return FallbackNeeded(reason="invalid record")

        logger.info(
            f"Extracted '{record.meeting_name}': {len(record.tasks)} tasks, "
            f"{len(record.decisions)} decisions, {len(record.questions)} questions"
        )
        return Extracted(record=record)
