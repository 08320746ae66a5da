"""AI quiz generation schemas."""

from typing import Any

from pydantic import Field

from quiz_builder.schemas.common import ApiModel

DEFAULT_QUESTION_TYPES = ["MCQ", "True/False", "One Word", "Subjective"]


class GenerateQuizRequest(ApiModel):
    """POST /api/generate-quiz — ``source`` is a topic or a block of text."""

    source: str | None = None
    num_questions: int = Field(default=5, ge=1, le=50)
    difficulties: list[str] = ["Intermediate"]
    question_types: list[str] = Field(default_factory=lambda: list(DEFAULT_QUESTION_TYPES))


class GeneratedQuestion(ApiModel):
    """Candidate question; not persisted until the author saves a quiz."""

    type: str
    text: str
    options: list[str] = []
    answer: Any = None
    explanation: str = ""


class GeneratedQuiz(ApiModel):
    quiz: list[GeneratedQuestion]
