"""Quiz authoring schemas."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from quiz_builder.schemas.common import ApiModel


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    FREE_TEXT = "free-text"


class QuestionWrite(ApiModel):
    """A question as sent by the editor.

    ``id`` is echoed back on edits so the question keeps its identity; it is
    ignored on create.
    """

    id: str | None = None
    type: QuestionType = QuestionType.SINGLE_CHOICE
    text: str
    options: list[str] = []
    answer: str | list[str] | None = None
    explanation: str = ""


class QuizCreate(ApiModel):
    """POST /quiz"""

    title: str
    description: str = ""
    questions: list[QuestionWrite] = []


class QuizUpdate(ApiModel):
    """PUT /quiz/{id} — only the fields sent are changed."""

    title: str | None = None
    description: str | None = None
    questions: list[QuestionWrite] | None = None


class QuestionRead(ApiModel):
    """Full question including the answer key (owner view)."""

    id: str
    type: QuestionType
    text: str
    options: list[str] = []
    answer: Any = None
    explanation: str = ""


class QuizRead(ApiModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str = ""
    questions: list[QuestionRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
