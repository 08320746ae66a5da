"""Hosted session schemas.

None of the question models here has an ``answer`` or ``explanation`` field,
so a snapshot can never leak the answer key through serialization.
"""

import uuid
from datetime import datetime

from pydantic import Field

from quiz_builder.schemas.common import ApiModel


class HostRequest(ApiModel):
    """POST /host"""

    quiz_id: uuid.UUID
    title: str | None = None
    description: str | None = None
    time_limit: int | None = None  # minutes
    start_time: datetime | None = None
    end_time: datetime | None = None


class SnapshotQuestion(ApiModel):
    id: str
    text: str
    type: str
    options: list[str] = []
    multiple: bool = False


class HostedSessionRead(ApiModel):
    """Full session as seen by its host."""

    session_id: str
    quiz_id: uuid.UUID | None = None
    host_id: uuid.UUID
    title: str
    description: str = ""
    questions: list[SnapshotQuestion] = Field(default_factory=list)
    time_limit: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    active: bool
    created_at: datetime
    stopped_at: datetime | None = None


class HostResponse(ApiModel):
    message: str = "Quiz hosted successfully"
    session_id: str
    hosted_quiz: HostedSessionRead


class TakeQuizRead(ApiModel):
    """GET /takequiz/{sessionId} — what a taker receives."""

    session_id: str
    title: str
    description: str = ""
    questions: list[SnapshotQuestion] = Field(default_factory=list)
    time_limit: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
