"""Pydantic schemas — re‑exported for convenience."""

from quiz_builder.schemas.common import ApiModel, ErrorResponse, OkResponse  # noqa: F401
from quiz_builder.schemas.user import (  # noqa: F401
    AuthResponse,
    UserCreate,
    UserLogin,
    UserRead,
)
from quiz_builder.schemas.quiz import (  # noqa: F401
    QuestionRead,
    QuestionType,
    QuestionWrite,
    QuizCreate,
    QuizRead,
    QuizUpdate,
)
from quiz_builder.schemas.hosting import (  # noqa: F401
    HostRequest,
    HostResponse,
    HostedSessionRead,
    SnapshotQuestion,
    TakeQuizRead,
)
from quiz_builder.schemas.attempt import (  # noqa: F401
    AnswerDetail,
    AttemptResult,
    AttemptSubmit,
    AttemptSummary,
    EligibilityRead,
    RankedAttempt,
    SessionAnalytics,
)
from quiz_builder.schemas.generation import (  # noqa: F401
    GenerateQuizRequest,
    GeneratedQuestion,
    GeneratedQuiz,
)
