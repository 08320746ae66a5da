"""Hosting: turn a quiz into an immutable, answer-free session and retire it.

The one-active-session-per-quiz rule is checked up front so the caller gets
the running session's id back, and is also guaranteed by the partial unique
index ``uq_hosted_sessions_active_quiz`` for hosts racing each other.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quiz_builder.config import settings
from quiz_builder.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from quiz_builder.core.identity import as_utc, utcnow
from quiz_builder.db.models import HostedSession, Quiz, QuestionTypeEnum, new_session_code
from quiz_builder.services.quiz_store import get_quiz
from quiz_builder.services.scoring import live_answer_key

logger = logging.getLogger(__name__)


@dataclass
class HostOverrides:
    title: str | None = None
    description: str | None = None
    time_limit: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


def build_snapshot(quiz: Quiz) -> list[dict[str, Any]]:
    """Copy id/text/type/options/multiple from each question, nothing else."""
    return [
        {
            "id": q.id,
            "text": q.text,
            "type": q.question_type.value,
            "options": list(q.options or []),
            "multiple": q.question_type == QuestionTypeEnum.MULTI_CHOICE,
        }
        for q in quiz.questions
    ]


def find_active_for_quiz(db: Session, quiz_id: uuid.UUID) -> HostedSession | None:
    return (
        db.query(HostedSession)
        .filter(HostedSession.quiz_id == quiz_id, HostedSession.active.is_(True))
        .first()
    )


def get_session(db: Session, session_id: str) -> HostedSession | None:
    return db.query(HostedSession).filter(HostedSession.session_id == session_id).first()


def _validate_overrides(overrides: HostOverrides) -> None:
    if overrides.time_limit is not None and overrides.time_limit <= 0:
        raise ValidationFailed("timeLimit must be a positive number of minutes")
    start = as_utc(overrides.start_time)
    end = as_utc(overrides.end_time)
    if start and end and end <= start:
        raise ValidationFailed("endTime must be after startTime")


def host(
    db: Session,
    quiz_id: uuid.UUID,
    host_id: uuid.UUID,
    overrides: HostOverrides | None = None,
) -> HostedSession:
    """Create the active session for *quiz_id*.

    Raises NotFound, Forbidden, ValidationFailed, or Conflict (carrying the
    id of the session that is already running).
    """
    overrides = overrides or HostOverrides()
    quiz = get_quiz(db, quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    if quiz.owner_id != host_id:
        raise Forbidden("Forbidden")
    _validate_overrides(overrides)

    running = find_active_for_quiz(db, quiz_id)
    if running is not None:
        raise Conflict("This quiz is already being hosted", session_id=running.session_id)

    hosted = HostedSession(
        session_id=new_session_code(),
        quiz_id=quiz.id,
        host_id=host_id,
        title=overrides.title or quiz.title,
        description=overrides.description or quiz.description or "",
        questions=build_snapshot(quiz),
        answer_key=live_answer_key(quiz) if settings.ANSWER_KEY_SOURCE == "snapshot" else None,
        time_limit=overrides.time_limit,
        start_time=as_utc(overrides.start_time),
        end_time=as_utc(overrides.end_time),
        active=True,
    )
    db.add(hosted)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        winner = find_active_for_quiz(db, quiz_id)
        if winner is None:
            raise
        # Lost a race with a concurrent host of the same quiz.
        logger.info("Concurrent host rejected for quiz %s", quiz_id)
        raise Conflict("This quiz is already being hosted", session_id=winner.session_id)
    db.refresh(hosted)
    logger.info(
        "Quiz %s hosted as session %s (%d questions)",
        quiz.id, hosted.session_id, len(hosted.questions),
    )
    return hosted


def get_active(db: Session, quiz_id: uuid.UUID, requester_id: uuid.UUID) -> HostedSession:
    quiz = get_quiz(db, quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    if quiz.owner_id != requester_id:
        raise Forbidden("Forbidden")
    hosted = find_active_for_quiz(db, quiz_id)
    if hosted is None:
        raise NotFound("No active hosted quiz found")
    return hosted


def stop(db: Session, session_id: str, requester_id: uuid.UUID) -> HostedSession:
    """Deactivate a session. Stopping an inactive session is a no-op."""
    hosted = get_session(db, session_id)
    if hosted is None:
        raise NotFound("Not found")
    if hosted.host_id != requester_id:
        raise Forbidden("Forbidden")
    if hosted.active:
        hosted.active = False
        hosted.stopped_at = utcnow()
        db.commit()
        db.refresh(hosted)
        logger.info("Session %s stopped", session_id)
    return hosted


def get_for_taking(db: Session, session_id: str) -> HostedSession:
    """Public lookup. Only active sessions are visible to takers."""
    hosted = get_session(db, session_id)
    if hosted is None or not hosted.active:
        raise NotFound("Quiz not available")
    return hosted
