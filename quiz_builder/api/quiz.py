"""Quiz authoring routes (owner only) and per-quiz analytics."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from quiz_builder.api.deps import get_current_user
from quiz_builder.db.models import Quiz, User
from quiz_builder.db.session import get_db
from quiz_builder.schemas.attempt import SessionAnalytics
from quiz_builder.schemas.common import OkResponse
from quiz_builder.schemas.quiz import QuestionRead, QuizCreate, QuizRead, QuizUpdate
from quiz_builder.services import analytics, quiz_store

router = APIRouter()


def _quiz_read(quiz: Quiz) -> QuizRead:
    return QuizRead(
        id=quiz.id,
        owner_id=quiz.owner_id,
        title=quiz.title,
        description=quiz.description or "",
        questions=[
            QuestionRead(
                id=q.id,
                type=q.question_type.value,
                text=q.text,
                options=q.options or [],
                answer=q.answer,
                explanation=q.explanation or "",
            )
            for q in quiz.questions
        ],
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
    )


@router.get("", response_model=list[QuizRead])
def list_quizzes(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All quizzes owned by the caller, newest first."""
    return [_quiz_read(q) for q in quiz_store.list_quizzes(db, current_user.id)]


@router.post("", response_model=QuizRead, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quiz = quiz_store.create_quiz(
        db, current_user.id, body.title, body.description, body.questions
    )
    return _quiz_read(quiz)


@router.get("/{quiz_id}", response_model=QuizRead)
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Full quiz, answers included, for editing."""
    return _quiz_read(quiz_store.get_quiz_for_owner(db, quiz_id, current_user.id))


@router.put("/{quiz_id}", response_model=QuizRead)
def update_quiz(
    quiz_id: uuid.UUID,
    body: QuizUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quiz = quiz_store.update_quiz(
        db,
        quiz_id,
        current_user.id,
        title=body.title,
        description=body.description,
        questions=body.questions,
    )
    return _quiz_read(quiz)


@router.delete("/{quiz_id}", response_model=OkResponse)
def delete_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quiz_store.delete_quiz(db, quiz_id, current_user.id)
    return OkResponse()


@router.get("/{quiz_id}/analytics", response_model=list[SessionAnalytics])
def quiz_analytics(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Attempts per hosted session, ranked by score percentage."""
    return analytics.quiz_analytics(db, quiz_id, current_user.id)
