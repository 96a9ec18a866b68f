from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .config import Settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


def _children(target: str):
    """One owned child collection: loaded with the meeting, deleted with it."""
    return relationship(
        target,
        back_populates="meeting",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Meeting(Base):
    __tablename__ = "meetings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    raw_transcript: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_name: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, index=True
    )

    tasks: Mapped[list["Task"]] = _children("Task")
    decisions: Mapped[list["Decision"]] = _children("Decision")
    questions: Mapped[list["Question"]] = _children("Question")
    insights: Mapped[list["Insight"]] = _children("Insight")
    deadlines: Mapped[list["Deadline"]] = _children("Deadline")
    attendees: Mapped[list["Attendee"]] = _children("Attendee")
    follow_ups: Mapped[list["FollowUpItem"]] = _children("FollowUpItem")
    risks: Mapped[list["Risk"]] = _children("Risk")
    agenda: Mapped[list["AgendaItem"]] = _children("AgendaItem")


class _MeetingChild:
    """Columns shared by every row owned by a meeting."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    meeting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True
    )


class Task(_MeetingChild, Base):
    __tablename__ = "tasks"

    task: Mapped[str] = mapped_column(Text, nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="Unassigned")
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    meeting: Mapped[Meeting] = relationship(back_populates="tasks")


class Decision(_MeetingChild, Base):
    __tablename__ = "decisions"

    decision: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    meeting: Mapped[Meeting] = relationship(back_populates="decisions")


class Question(_MeetingChild, Base):
    __tablename__ = "questions"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Unanswered")
    answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meeting: Mapped[Meeting] = relationship(back_populates="questions")


class Insight(_MeetingChild, Base):
    __tablename__ = "insights"

    insight: Mapped[str] = mapped_column(Text, nullable=False)
    reference: Mapped[str] = mapped_column(Text, nullable=False, default="")
    meeting: Mapped[Meeting] = relationship(back_populates="insights")


class Deadline(_MeetingChild, Base):
    __tablename__ = "deadlines"

    description: Mapped[str] = mapped_column(Text, nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    meeting: Mapped[Meeting] = relationship(back_populates="deadlines")


class Attendee(_MeetingChild, Base):
    __tablename__ = "attendees"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, default="No role specified")
    meeting: Mapped[Meeting] = relationship(back_populates="attendees")


class FollowUpItem(_MeetingChild, Base):
    __tablename__ = "follow_ups"

    description: Mapped[str] = mapped_column(Text, nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="Unassigned")
    meeting: Mapped[Meeting] = relationship(back_populates="follow_ups")


class Risk(_MeetingChild, Base):
    __tablename__ = "risks"

    risk: Mapped[str] = mapped_column(Text, nullable=False)
    impact: Mapped[str] = mapped_column(Text, nullable=False, default="No impact specified")
    meeting: Mapped[Meeting] = relationship(back_populates="risks")


class AgendaItem(_MeetingChild, Base):
    __tablename__ = "agenda_items"

    item: Mapped[str] = mapped_column(Text, nullable=False)
    meeting: Mapped[Meeting] = relationship(back_populates="agenda")


# Engine and session factory, configured from the environment at import time
_settings = Settings.from_env()
engine = create_async_engine(_settings.database_url, echo=False)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Initialize database by creating all tables."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for FastAPI routes to get database session."""
    async with async_session_maker() as session:
        yield session


async def create_meeting(session: AsyncSession, meeting: Meeting) -> Meeting:
    """
    Insert a meeting and all of its children in one transaction.

    Raises:
        PersistenceError: If the write fails; nothing is left behind
    """
    name = meeting.name
    logger.info(f"Inserting meeting '{name}'")
    try:
        session.add(meeting)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to insert meeting '{name}': {e}", exc_info=True)
        raise PersistenceError("Failed to save meeting") from e

    saved = await get_meeting(session, meeting.id, refresh=True)
    if saved is None:
        raise PersistenceError(f"Meeting {meeting.id} vanished after commit")
    logger.info(f"Successfully inserted meeting (ID: {saved.id})")
    return saved


async def get_meeting(
    session: AsyncSession, meeting_id: str, refresh: bool = False
) -> Optional[Meeting]:
    """Retrieve a meeting aggregate by ID."""
    stmt = select(Meeting).where(Meeting.id == meeting_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_meetings(session: AsyncSession, limit: int = 100) -> list[Meeting]:
    """Get meetings sorted by creation time, newest first."""
    stmt = select(Meeting).order_by(Meeting.created_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_meeting(session: AsyncSession, meeting_id: str) -> bool:
    """Delete a meeting and every child row. Returns False if it did not exist."""
    meeting = await get_meeting(session, meeting_id)
    if meeting is None:
        return False

    try:
        await session.delete(meeting)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to delete meeting {meeting_id}: {e}", exc_info=True)
        raise PersistenceError("Failed to delete meeting") from e

    logger.info(f"Deleted meeting: {meeting_id}")
    return True
