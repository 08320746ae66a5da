"""AI generation routes. Both return unsaved candidate questions."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from quiz_builder.api.deps import get_current_user
from quiz_builder.config import settings
from quiz_builder.core.errors import ValidationFailed
from quiz_builder.db.models import User
from quiz_builder.schemas.generation import GeneratedQuestion, GeneratedQuiz, GenerateQuizRequest
from quiz_builder.services import generation
from quiz_builder.services.rate_limiter import require_ai_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate-quiz", response_model=GeneratedQuiz)
def generate_quiz(
    body: GenerateQuizRequest,
    current_user: User = Depends(get_current_user),
    _rl: None = Depends(require_ai_rate_limit),
):
    questions = generation.generate_from_source(
        body.source,
        num_questions=body.num_questions,
        difficulties=body.difficulties,
        question_types=body.question_types,
    )
    return GeneratedQuiz(quiz=[GeneratedQuestion(**q) for q in questions])


@router.post("/convert-quiz", response_model=GeneratedQuiz)
def convert_quiz(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    _rl: None = Depends(require_ai_rate_limit),
):
    """Extract questions from an uploaded .pdf / .docx / .txt quiz."""
    content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationFailed(
            f"File too large (max {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB)"
        )
    if not content:
        raise ValidationFailed("Uploaded file is empty")
    logger.info("Converting %s (%d bytes) for user %s", file.filename, len(content), current_user.id)
    questions = generation.convert_document(content, file.filename or "")
    return GeneratedQuiz(quiz=[GeneratedQuestion(**q) for q in questions])
