"""API route package — imports all routers for main.py."""

from quiz_builder.api.health import router as health_router  # noqa: F401
from quiz_builder.api.auth import router as auth_router  # noqa: F401
from quiz_builder.api.quiz import router as quiz_router  # noqa: F401
from quiz_builder.api.host import router as host_router  # noqa: F401
from quiz_builder.api.take import router as take_router  # noqa: F401
from quiz_builder.api.ai import router as ai_router  # noqa: F401
