"""Eligibility gate: may this identity attempt the session right now?

Two independent predicates, both required before a submission is scored:

- attempt count (``check_eligibility``) against ``MAX_ATTEMPTS_PER_SESSION``;
- time window (``ensure_within_window``) against the session's start/end.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from quiz_builder.config import settings
from quiz_builder.core.errors import InvalidState, NotFound
from quiz_builder.core.identity import Identity, as_utc, utcnow
from quiz_builder.db.models import Attempt, HostedSession
from quiz_builder.services.hosting import get_session

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_MESSAGE = "Maximum attempts exceeded"


@dataclass(frozen=True)
class Eligibility:
    allowed: bool
    attempts_made: int
    max_attempts: int
    message: str | None = None


def count_attempts(db: Session, session_id: str, identity: Identity) -> int:
    """Prior attempts by this identity: by user id, or by name among anonymous takers."""
    query = db.query(Attempt).filter(Attempt.session_id == session_id)
    if identity.user_id is not None:
        query = query.filter(Attempt.user_id == identity.user_id)
    else:
        query = query.filter(Attempt.user_id.is_(None), Attempt.name == identity.name)
    return query.count()


def evaluate_count(attempts_made: int, max_attempts: int) -> Eligibility:
    if attempts_made >= max_attempts:
        return Eligibility(False, attempts_made, max_attempts, MAX_ATTEMPTS_MESSAGE)
    return Eligibility(True, attempts_made, max_attempts)


def check_eligibility(
    db: Session,
    session_id: str,
    identity: Identity,
    max_attempts: int | None = None,
) -> Eligibility:
    hosted = get_session(db, session_id)
    if hosted is None or not hosted.active:
        raise NotFound("Quiz not available")
    limit = settings.MAX_ATTEMPTS_PER_SESSION if max_attempts is None else max_attempts
    result = evaluate_count(count_attempts(db, session_id, identity), limit)
    if not result.allowed:
        logger.info("Attempt cap reached for %s on session %s", identity.name, session_id)
    return result


def effective_deadline(hosted: HostedSession) -> datetime | None:
    """Latest moment a submission is accepted, or None when open-ended.

    With ``ENFORCE_TIME_LIMIT`` the time limit (plus grace) counted from the
    session's start, or its creation when it has no start, also caps it.
    """
    end = as_utc(hosted.end_time)
    if settings.ENFORCE_TIME_LIMIT and hosted.time_limit:
        opened = as_utc(hosted.start_time) or as_utc(hosted.created_at)
        cutoff = opened + timedelta(
            minutes=hosted.time_limit, seconds=settings.TIME_LIMIT_GRACE_SECONDS
        )
        end = cutoff if end is None else min(end, cutoff)
    return end


def ensure_within_window(hosted: HostedSession, now: datetime | None = None) -> None:
    now = as_utc(now) if now is not None else utcnow()
    start = as_utc(hosted.start_time)
    if start is not None and now < start:
        raise InvalidState("Quiz not started yet")
    deadline = effective_deadline(hosted)
    if deadline is not None and now > deadline:
        raise InvalidState("Quiz ended")
