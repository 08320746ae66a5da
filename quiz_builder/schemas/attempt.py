"""Attempt, eligibility and analytics schemas."""

import uuid
from datetime import datetime
from typing import Any

from quiz_builder.schemas.common import ApiModel


class AttemptSubmit(ApiModel):
    """POST /takequiz/{sessionId}/submit"""

    answers: dict[str, Any] = {}  # {question_id: "text" | ["opt", ...]}
    name: str | None = None  # display name for anonymous takers


class AnswerDetail(ApiModel):
    question_id: str
    question_text: str | None = None
    correct: bool
    submitted_answer: Any = None
    correct_answer: Any = None
    type: str | None = None


class AttemptResult(ApiModel):
    """Returned right after submission — correct answers are revealed."""

    attempt_id: uuid.UUID
    score: int
    correct_count: int
    total: int
    details: list[AnswerDetail] = []


class EligibilityRead(ApiModel):
    allowed: bool
    attempts_made: int | None = None
    max_attempts: int | None = None
    message: str | None = None


class AttemptSummary(ApiModel):
    """A taker's own past attempt."""

    attempt_id: uuid.UUID
    session_id: str
    title: str | None = None
    score: int
    correct_count: int
    total: int
    created_at: datetime


class RankedAttempt(ApiModel):
    attempt_id: uuid.UUID
    user_name: str
    score_percent: float
    correct: int
    total: int
    created_at: datetime


class SessionAnalytics(ApiModel):
    session_id: str
    title: str
    active: bool
    created_at: datetime
    attempts: list[RankedAttempt] = []
