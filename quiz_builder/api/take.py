"""Taking routes: fetch a hosted quiz, check eligibility, submit answers."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quiz_builder.api.deps import get_current_user, get_optional_user, get_taker, resolve_taker
from quiz_builder.core.identity import Identity
from quiz_builder.db.models import User
from quiz_builder.db.session import get_db
from quiz_builder.schemas.attempt import (
    AnswerDetail,
    AttemptResult,
    AttemptSubmit,
    AttemptSummary,
    EligibilityRead,
)
from quiz_builder.schemas.hosting import TakeQuizRead
from quiz_builder.services import hosting
from quiz_builder.services.attempts import list_attempts_for_user
from quiz_builder.services.eligibility import check_eligibility
from quiz_builder.services.taking import submit_answers

router = APIRouter()


# Declared before "/{session_id}" so "attempts" is not read as a session id.
@router.get("/attempts/me", response_model=list[AttemptSummary])
def my_attempts(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's own attempts across all sessions, newest first."""
    attempts = list_attempts_for_user(db, current_user.id, skip=skip, limit=limit)
    return [
        AttemptSummary(
            attempt_id=a.id,
            session_id=a.session_id,
            title=a.hosted_session.title if a.hosted_session else None,
            score=a.score,
            correct_count=a.correct_count,
            total=a.total,
            created_at=a.created_at,
        )
        for a in attempts
    ]


@router.get("/{session_id}", response_model=TakeQuizRead)
def get_hosted_quiz(session_id: str, db: Session = Depends(get_db)):
    """Public view of an active session: questions without answers."""
    return hosting.get_for_taking(db, session_id)


@router.get("/{session_id}/check", response_model=EligibilityRead, response_model_exclude_none=True)
def check_attempts(
    session_id: str,
    taker: Identity = Depends(get_taker),
    db: Session = Depends(get_db),
):
    result = check_eligibility(db, session_id, taker)
    return EligibilityRead(
        allowed=result.allowed,
        attempts_made=result.attempts_made,
        max_attempts=result.max_attempts,
        message=result.message,
    )


@router.post("/{session_id}/submit", response_model=AttemptResult)
def submit(
    session_id: str,
    body: AttemptSubmit,
    name: str | None = Query(default=None, max_length=255),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Score the answers against the session and record the attempt.

    Correct answers are revealed in ``details`` only here, after submission.
    """
    taker = resolve_taker(user, body.name or name)
    attempt, result = submit_answers(db, session_id, taker, body.answers)
    return AttemptResult(
        attempt_id=attempt.id,
        score=result.score,
        correct_count=result.correct_count,
        total=result.total,
        details=[
            AnswerDetail(
                question_id=d.question_id,
                question_text=d.question_text,
                correct=d.correct,
                submitted_answer=d.submitted_answer,
                correct_answer=d.correct_answer,
                type=d.question_type,
            )
            for d in result.details
        ],
    )
