from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_DESCRIPTION, UNASSIGNED


# Canonical extraction record: one fixed shape regardless of how the model spelled its keys.


class TaskRecord(BaseModel):
    description: str
    owner: str = UNASSIGNED
    due_date: Optional[datetime] = None


class DecisionRecord(BaseModel):
    description: str
    date: Optional[datetime] = None


class QuestionRecord(BaseModel):
    question: str
    status: str = "Unanswered"
    answer: Optional[str] = None


class InsightRecord(BaseModel):
    insight: str
    reference: str = ""


class DeadlineRecord(BaseModel):
    description: str
    due_date: Optional[datetime] = None


class AttendeeRecord(BaseModel):
    name: str
    role: str = "No role specified"


class FollowUpRecord(BaseModel):
    description: str
    owner: str = UNASSIGNED


class RiskRecord(BaseModel):
    risk: str
    impact: str = "No impact specified"


class AgendaRecord(BaseModel):
    item: str


class MeetingRecord(BaseModel):
    """Normalized structured facts extracted from one transcript."""

    meeting_name: str
    description: str = DEFAULT_DESCRIPTION
    summary: str = ""
    tasks: list[TaskRecord] = Field(default_factory=list)
    decisions: list[DecisionRecord] = Field(default_factory=list)
    questions: list[QuestionRecord] = Field(default_factory=list)
    insights: list[InsightRecord] = Field(default_factory=list)
    deadlines: list[DeadlineRecord] = Field(default_factory=list)
    attendees: list[AttendeeRecord] = Field(default_factory=list)
    follow_ups: list[FollowUpRecord] = Field(default_factory=list)
    risks: list[RiskRecord] = Field(default_factory=list)
    agenda: list[AgendaRecord] = Field(default_factory=list)


# API response models, serialized with camelCase keys.


class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class TaskOut(CamelModel):
    id: str
    task: str
    owner: str
    due_date: Optional[datetime] = None


class DecisionOut(CamelModel):
    id: str
    decision: str
    date: datetime


class QuestionOut(CamelModel):
    id: str
    question: str
    status: str
    answer: Optional[str] = None


class InsightOut(CamelModel):
    id: str
    insight: str
    reference: str


class DeadlineOut(CamelModel):
    id: str
    description: str
    due_date: Optional[datetime] = None


class AttendeeOut(CamelModel):
    id: str
    name: str
    role: str


class FollowUpOut(CamelModel):
    id: str
    description: str
    owner: str


class RiskOut(CamelModel):
    id: str
    risk: str
    impact: str


class AgendaItemOut(CamelModel):
    id: str
    item: str


class MeetingSummary(CamelModel):
    """Basic meeting info for list views."""

    id: str
    name: str
    description: str
    file_name: Optional[str] = None
    created_at: datetime


class MeetingOut(MeetingSummary):
    """The full meeting aggregate."""

    raw_transcript: str
    summary: str
    tasks: list[TaskOut]
    decisions: list[DecisionOut]
    questions: list[QuestionOut]
    insights: list[InsightOut]
    deadlines: list[DeadlineOut]
    attendees: list[AttendeeOut]
    follow_ups: list[FollowUpOut]
    risks: list[RiskOut]
    agenda: list[AgendaItemOut]


class GenerateEmailRequest(CamelModel):
    attendee_id: Optional[str] = None
    attendee_name: str = Field(min_length=1)


class FollowUpEmail(CamelModel):
    subject: str
    body: str
    recipient: str
    meeting_name: str
    date: str
