"""Submission orchestration: preconditions → eligibility → scoring → ledger.

Scoring never looks at attempt counts; the gate is re-run here, inside the
same transaction as the insert and under a row lock on the session, so two
concurrent submissions from one identity cannot both slip under the cap.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from quiz_builder.core.errors import InvalidState, NotFound
from quiz_builder.core.identity import Identity
from quiz_builder.config import settings
from quiz_builder.db.models import Attempt, HostedSession
from quiz_builder.services.attempts import record_attempt
from quiz_builder.services.eligibility import (
    count_attempts,
    ensure_within_window,
    evaluate_count,
)
from quiz_builder.services.quiz_store import get_quiz
from quiz_builder.services.scoring import ScoreResult, answer_key_for, score_submission

logger = logging.getLogger(__name__)


def submit_answers(
    db: Session,
    session_id: str,
    identity: Identity,
    answers: dict[str, Any],
    *,
    now: datetime | None = None,
) -> tuple[Attempt, ScoreResult]:
    hosted = (
        db.query(HostedSession)
        .filter(HostedSession.session_id == session_id)
        .with_for_update()
        .first()
    )
    if hosted is None:
        raise NotFound("Hosted quiz not found")
    if not hosted.active:
        raise InvalidState("Quiz no longer active")

    quiz = get_quiz(db, hosted.quiz_id) if hosted.quiz_id else None
    if quiz is None:
        raise NotFound("Original quiz not found")

    ensure_within_window(hosted, now)

    eligibility = evaluate_count(
        count_attempts(db, session_id, identity), settings.MAX_ATTEMPTS_PER_SESSION
    )
    if not eligibility.allowed:
        raise InvalidState(
            eligibility.message or "Maximum attempts exceeded",
            details={
                "attemptsMade": eligibility.attempts_made,
                "maxAttempts": eligibility.max_attempts,
            },
        )

    result = score_submission(hosted.questions, answer_key_for(hosted, quiz), answers)
    attempt = record_attempt(db, hosted, identity, answers, result)
    db.commit()
    db.refresh(attempt)
    logger.info(
        "Attempt %s recorded for session %s by %s: %d/%d",
        attempt.id, session_id, identity.name, result.correct_count, result.total,
    )
    return attempt, result
