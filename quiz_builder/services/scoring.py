"""Deterministic scoring of a hosted-session submission.

Multi-choice questions compare answer *sets*: both sides are reduced to a
sorted, de-duplicated list of strings and must match exactly.
Single-answer questions (single-choice, true/false, short-answer) compare the
trimmed, case-folded submission against the trimmed, case-folded key.
Free-text questions are never auto-graded as correct.

Every question in the session snapshot yields one detail record; the score is
one point per correct question, with no partial credit or weighting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from quiz_builder.config import settings
from quiz_builder.db.models import HostedSession, Quiz, QuestionTypeEnum

logger = logging.getLogger(__name__)

_SINGLE_ANSWER_TYPES = frozenset(
    {
        QuestionTypeEnum.SINGLE_CHOICE.value,
        QuestionTypeEnum.TRUE_FALSE.value,
        QuestionTypeEnum.SHORT_ANSWER.value,
    }
)


# ── Result types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class QuestionOutcome:
    question_id: str
    question_text: str | None
    question_type: str | None
    correct: bool
    submitted_answer: Any
    correct_answer: Any


@dataclass
class ScoreResult:
    total: int
    correct_count: int
    details: list[QuestionOutcome] = field(default_factory=list)

    @property
    def score(self) -> int:
        return self.correct_count


# ── Normalisation helpers ─────────────────────────────────────────────────────


def normalize_text(value: Any) -> str:
    """Trim and case-fold a single answer: ' Paris ' → 'paris'."""
    return str(value).strip().casefold()


def normalize_choice_set(value: Any) -> list[str]:
    """Sorted, de-duplicated string list. Anything that is not a list is empty."""
    if not isinstance(value, (list, tuple, set)):
        return []
    return sorted({str(v) for v in value})


# ── Per-question evaluation ───────────────────────────────────────────────────


def is_answer_correct(question_type: str | None, submitted: Any, correct: Any) -> bool:
    """Grade one answer against its key.

    A missing key is never correct, whatever was submitted.
    """
    if correct is None:
        return False

    if question_type == QuestionTypeEnum.MULTI_CHOICE.value:
        expected = correct if isinstance(correct, (list, tuple)) else [correct]
        return normalize_choice_set(expected) == normalize_choice_set(submitted)

    if question_type in _SINGLE_ANSWER_TYPES:
        if submitted is None or isinstance(submitted, (list, tuple, dict)):
            return False
        if isinstance(correct, (list, tuple)):
            if not correct:
                return False
            correct = correct[0]
        student = normalize_text(submitted)
        if not student:
            return False
        return student == normalize_text(correct)

    return False


def score_submission(
    snapshot_questions: Iterable[Mapping[str, Any]],
    answer_key: Mapping[str, Any],
    answers: Mapping[str, Any],
) -> ScoreResult:
    """Evaluate *answers* question by question over the session snapshot.

    The snapshot, not the live quiz, decides which questions count, so edits
    made mid-session cannot change the total.
    """
    details: list[QuestionOutcome] = []
    for hq in snapshot_questions:
        qid = str(hq.get("id"))
        submitted = answers.get(qid)
        correct = answer_key.get(qid)
        q_type = hq.get("type")
        details.append(
            QuestionOutcome(
                question_id=qid,
                question_text=hq.get("text"),
                question_type=q_type,
                correct=is_answer_correct(q_type, submitted, correct),
                submitted_answer=submitted,
                correct_answer=correct,
            )
        )

    result = ScoreResult(
        total=len(details),
        correct_count=sum(1 for d in details if d.correct),
        details=details,
    )
    logger.debug("Scored submission: %d/%d", result.correct_count, result.total)
    return result


# ── Answer key resolution ─────────────────────────────────────────────────────


def live_answer_key(quiz: Quiz) -> dict[str, Any]:
    """Map question id → current answer, read from the quiz as it is now."""
    return {q.id: q.answer for q in quiz.questions}


def answer_key_for(session: HostedSession, quiz: Quiz) -> dict[str, Any]:
    """Pick the answer key according to ``ANSWER_KEY_SOURCE``.

    Sessions hosted while the live mode was active have no captured key and
    fall back to the live one.
    """
    if settings.ANSWER_KEY_SOURCE == "snapshot" and session.answer_key is not None:
        return dict(session.answer_key)
    return live_answer_key(quiz)
