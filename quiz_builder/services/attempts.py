"""Attempt ledger — append-only storage of scored submissions."""

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from quiz_builder.core.identity import Identity
from quiz_builder.db.models import Attempt, AttemptAnswer, HostedSession
from quiz_builder.services.scoring import ScoreResult

logger = logging.getLogger(__name__)


def record_attempt(
    db: Session,
    hosted: HostedSession,
    identity: Identity,
    answers: dict[str, Any],
    result: ScoreResult,
) -> Attempt:
    """Add one Attempt (and its detail rows) to the session. Does not commit."""
    attempt = Attempt(
        session_id=hosted.session_id,
        hosted_session_id=hosted.id,
        quiz_id=hosted.quiz_id,
        user_id=identity.user_id,
        name=identity.name,
        answers=dict(answers),
        score=result.score,
        total=result.total,
        correct_count=result.correct_count,
    )
    attempt.details = [
        AttemptAnswer(
            position=idx,
            question_id=d.question_id,
            question_text=d.question_text,
            question_type=d.question_type,
            is_correct=d.correct,
            submitted_answer=d.submitted_answer,
            correct_answer=d.correct_answer,
        )
        for idx, d in enumerate(result.details)
    ]
    db.add(attempt)
    db.flush()
    return attempt


def list_attempts_for_user(
    db: Session, user_id: uuid.UUID, *, skip: int = 0, limit: int = 20
) -> list[Attempt]:
    return (
        db.query(Attempt)
        .filter(Attempt.user_id == user_id)
        .order_by(Attempt.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_attempts_for_sessions(db: Session, hosted_ids: list[uuid.UUID]) -> list[Attempt]:
    if not hosted_ids:
        return []
    return db.query(Attempt).filter(Attempt.hosted_session_id.in_(hosted_ids)).all()
