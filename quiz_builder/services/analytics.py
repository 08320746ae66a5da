"""Per-quiz analytics: attempts grouped by hosted session, best first."""

import uuid

from sqlalchemy.orm import Session

from quiz_builder.db.models import HostedSession
from quiz_builder.schemas.attempt import RankedAttempt, SessionAnalytics
from quiz_builder.services.attempts import list_attempts_for_sessions
from quiz_builder.services.quiz_store import get_quiz_for_owner


def _percent(correct: int, total: int) -> float:
    return round(correct / total * 100, 2) if total else 0.0


def quiz_analytics(db: Session, quiz_id: uuid.UUID, owner_id: uuid.UUID) -> list[SessionAnalytics]:
    """Sessions newest first; within each, attempts by descending percentage."""
    get_quiz_for_owner(db, quiz_id, owner_id)

    sessions = (
        db.query(HostedSession)
        .filter(HostedSession.quiz_id == quiz_id)
        .order_by(HostedSession.created_at.desc())
        .all()
    )
    by_session: dict[uuid.UUID, list[RankedAttempt]] = {s.id: [] for s in sessions}
    for attempt in list_attempts_for_sessions(db, list(by_session)):
        by_session[attempt.hosted_session_id].append(
            RankedAttempt(
                attempt_id=attempt.id,
                user_name=attempt.name,
                score_percent=_percent(attempt.correct_count, attempt.total),
                correct=attempt.correct_count,
                total=attempt.total,
                created_at=attempt.created_at,
            )
        )

    return [
        SessionAnalytics(
            session_id=s.session_id,
            title=s.title,
            active=s.active,
            created_at=s.created_at,
            attempts=sorted(
                by_session[s.id],
                key=lambda a: (-a.score_percent, a.created_at),
            ),
        )
        for s in sessions
    ]
