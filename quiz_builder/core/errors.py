"""Domain error taxonomy.

Core services raise these; ``main.py`` turns them into the standard
``ErrorResponse`` envelope with the matching HTTP status.
"""

from typing import Any


class QuizBuilderError(Exception):
    """Base class for every error a core operation can return."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(QuizBuilderError):
    status_code = 400
    error_code = "validation_error"


class Unauthorized(QuizBuilderError):
    status_code = 401
    error_code = "unauthorized"


class Forbidden(QuizBuilderError):
    status_code = 403
    error_code = "forbidden"


class NotFound(QuizBuilderError):
    status_code = 404
    error_code = "not_found"


class Conflict(QuizBuilderError):
    """Duplicate active session. ``session_id`` is the one already running."""

    status_code = 409
    error_code = "conflict"

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message, details={"sessionId": session_id} if session_id else None)
        self.session_id = session_id


class InvalidState(QuizBuilderError):
    status_code = 400
    error_code = "invalid_state"


class GenerationFailed(QuizBuilderError):
    """AI collaborator failure; ``raw`` holds whatever the model returned."""

    status_code = 500
    error_code = "generation_failed"

    def __init__(self, message: str, *, raw: Any = None) -> None:
        super().__init__(message, details={"raw": raw} if raw is not None else None)
        self.raw = raw
