"""SQLAlchemy ORM models for the quiz builder.

Tables
------
- users            – authors, hosts and takers
- quizzes          – mutable authoring documents
- questions        – ordered questions of a quiz (stable string ids)
- hosted_sessions  – immutable, answer-free snapshots of a quiz being hosted
- attempts         – one scored submission against a hosted session
- attempt_answers  – per-question detail of an attempt
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quiz_builder.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def new_question_id() -> str:
    return uuid.uuid4().hex


def new_session_code() -> str:
    return str(uuid.uuid4())


# ── Enums (stored as VARCHAR via SQLAlchemy Enum) ─────────────────────────────


class QuestionTypeEnum(str, enum.Enum):
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    FREE_TEXT = "free-text"


CHOICE_TYPES = frozenset(
    {
        QuestionTypeEnum.SINGLE_CHOICE,
        QuestionTypeEnum.MULTI_CHOICE,
        QuestionTypeEnum.TRUE_FALSE,
    }
)


# ── Users ─────────────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    quizzes: Mapped[list["Quiz"]] = relationship(back_populates="owner")


# ── Quizzes ───────────────────────────────────────────────────────────────────


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    owner: Mapped["User"] = relationship(back_populates="quizzes")
    questions: Mapped[list["Question"]] = relationship(
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
    # No cascade: deleting a quiz nulls the reference, sessions are kept.
    sessions: Mapped[list["HostedSession"]] = relationship(back_populates="quiz")


# ── Questions ─────────────────────────────────────────────────────────────────


class Question(Base):
    __tablename__ = "questions"

    # Stable across edits so snapshots and answer keys can be correlated.
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_question_id)
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    question_type: Mapped[QuestionTypeEnum] = mapped_column(
        Enum(QuestionTypeEnum, name="question_type_enum",
             values_callable=lambda e: [m.value for m in e]),
        default=QuestionTypeEnum.SINGLE_CHOICE,
    )
    text: Mapped[str] = mapped_column(Text)
    options: Mapped[list[str]] = mapped_column(JSON, default=list)
    # str for single-answer types, list[str] for multi-choice
    answer: Mapped[Any] = mapped_column(JSON, nullable=True)
    explanation: Mapped[str] = mapped_column(Text, default="")

    quiz: Mapped["Quiz"] = relationship(back_populates="questions")


# ── Hosted sessions ───────────────────────────────────────────────────────────


class HostedSession(Base):
    """A quiz being hosted. ``questions`` never carries answers or explanations."""

    __tablename__ = "hosted_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    session_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, default=new_session_code
    )
    quiz_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="SET NULL"), nullable=True
    )
    host_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str] = mapped_column(Text, default="")
    questions: Mapped[list[dict]] = mapped_column(JSON, default=list)
    # Only filled when ANSWER_KEY_SOURCE="snapshot"; never sent to takers.
    answer_key: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    stopped_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    quiz: Mapped["Quiz | None"] = relationship(back_populates="sessions")
    host: Mapped["User"] = relationship("User")
    attempts: Mapped[list["Attempt"]] = relationship(back_populates="hosted_session")

    __table_args__ = (
        # At most one active session per quiz, enforced by the store.
        Index(
            "uq_hosted_sessions_active_quiz",
            "quiz_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active"),
        ),
    )


# ── Attempts ──────────────────────────────────────────────────────────────────


class Attempt(Base):
    """Append-only record of one scored submission."""

    __tablename__ = "attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    session_id: Mapped[str] = mapped_column(String(64), index=True)
    hosted_session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("hosted_sessions.id")
    )
    quiz_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    answers: Mapped[dict] = mapped_column(JSON, default=dict)
    score: Mapped[int] = mapped_column(Integer, default=0)
    total: Mapped[int] = mapped_column(Integer, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    hosted_session: Mapped["HostedSession"] = relationship(back_populates="attempts")
    details: Mapped[list["AttemptAnswer"]] = relationship(
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.position",
    )

    __table_args__ = (
        Index("ix_attempts_session_user", "session_id", "user_id"),
        Index("ix_attempts_session_name", "session_id", "name"),
    )


class AttemptAnswer(Base):
    """Per-question detail within an attempt."""

    __tablename__ = "attempt_answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("attempts.id")
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    # Plain string, not a FK: the question may since have been edited away.
    question_id: Mapped[str] = mapped_column(String(64))
    question_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    submitted_answer: Mapped[Any] = mapped_column(JSON, nullable=True)
    correct_answer: Mapped[Any] = mapped_column(JSON, nullable=True)

    attempt: Mapped["Attempt"] = relationship(back_populates="details")
