"""Quiz authoring store: owner-scoped CRUD over quizzes and their questions."""

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from quiz_builder.core.errors import Forbidden, NotFound, ValidationFailed
from quiz_builder.db.models import (
    CHOICE_TYPES,
    Question,
    QuestionTypeEnum,
    Quiz,
    new_question_id,
)
from quiz_builder.schemas.quiz import QuestionWrite

logger = logging.getLogger(__name__)

TRUE_FALSE_OPTIONS = ["True", "False"]


# ── Lookups ───────────────────────────────────────────────────────────────────


def get_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz | None:
    return db.query(Quiz).filter(Quiz.id == quiz_id).first()


def get_quiz_for_owner(db: Session, quiz_id: uuid.UUID, owner_id: uuid.UUID) -> Quiz:
    """Return the quiz if *owner_id* owns it; NotFound / Forbidden otherwise."""
    quiz = get_quiz(db, quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    if quiz.owner_id != owner_id:
        raise Forbidden("Forbidden")
    return quiz


def list_quizzes(db: Session, owner_id: uuid.UUID) -> list[Quiz]:
    return (
        db.query(Quiz)
        .filter(Quiz.owner_id == owner_id)
        .order_by(Quiz.created_at.desc())
        .all()
    )


# ── Validation ────────────────────────────────────────────────────────────────


def _clean_question(item: QuestionWrite, index: int) -> dict[str, Any]:
    """Check one question and return the column values to store."""
    q_type = QuestionTypeEnum(item.type.value)
    text = item.text.strip()
    if not text:
        raise ValidationFailed(f"Question {index + 1}: text is required")

    options = [str(o) for o in item.options]
    answer = item.answer

    if q_type == QuestionTypeEnum.TRUE_FALSE and not options:
        options = list(TRUE_FALSE_OPTIONS)
    if q_type not in CHOICE_TYPES:
        options = []

    if q_type == QuestionTypeEnum.MULTI_CHOICE:
        if answer is None:
            answer = []
        elif isinstance(answer, str):
            answer = [answer]
        answer = list(dict.fromkeys(answer))
    elif isinstance(answer, list):
        raise ValidationFailed(
            f"Question {index + 1}: a {q_type.value} question takes a single answer"
        )

    if q_type in CHOICE_TYPES:
        values = answer if isinstance(answer, list) else ([answer] if answer else [])
        missing = [v for v in values if v not in options]
        if missing:
            raise ValidationFailed(
                f"Question {index + 1}: answer {missing!r} is not among the options",
                details={"questionIndex": index, "invalidAnswers": missing},
            )

    return {
        "question_type": q_type,
        "text": text,
        "options": options,
        "answer": answer,
        "explanation": item.explanation or "",
    }


def _apply_questions(quiz: Quiz, items: list[QuestionWrite]) -> None:
    """Replace the quiz's questions, keeping ids the client echoed back."""
    existing = {q.id: q for q in quiz.questions}
    ordered: list[Question] = []
    for idx, item in enumerate(items):
        values = _clean_question(item, idx)
        question = existing.pop(item.id, None) if item.id else None
        if question is None:
            question = Question(id=new_question_id(), **values)
        else:
            for key, value in values.items():
                setattr(question, key, value)
        question.position = idx
        ordered.append(question)
    # Whatever is left in ``existing`` was dropped by the editor: delete-orphan.
    quiz.questions = ordered


# ── Mutations ─────────────────────────────────────────────────────────────────


def create_quiz(
    db: Session,
    owner_id: uuid.UUID,
    title: str,
    description: str = "",
    questions: list[QuestionWrite] | None = None,
) -> Quiz:
    if not title or not title.strip():
        raise ValidationFailed("Title required")

    quiz = Quiz(owner_id=owner_id, title=title.strip(), description=description or "")
    # Ids are always assigned here on create, never taken from the client.
    fresh = [item.model_copy(update={"id": None}) for item in questions or []]
    _apply_questions(quiz, fresh)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz %s created by %s (%d questions)", quiz.id, owner_id, len(quiz.questions))
    return quiz


def update_quiz(
    db: Session,
    quiz_id: uuid.UUID,
    owner_id: uuid.UUID,
    *,
    title: str | None = None,
    description: str | None = None,
    questions: list[QuestionWrite] | None = None,
) -> Quiz:
    quiz = get_quiz_for_owner(db, quiz_id, owner_id)
    if title is not None:
        if not title.strip():
            raise ValidationFailed("Title required")
        quiz.title = title.strip()
    if description is not None:
        quiz.description = description
    if questions is not None:
        _apply_questions(quiz, questions)
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz %s updated", quiz.id)
    return quiz


def delete_quiz(db: Session, quiz_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    """Delete on explicit owner request. Hosted sessions and attempts are kept."""
    quiz = get_quiz_for_owner(db, quiz_id, owner_id)
    db.delete(quiz)
    db.commit()
    logger.info("Quiz %s deleted by %s", quiz_id, owner_id)
