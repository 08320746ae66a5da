"""Hosting routes: publish a quiz as a live session, look it up, stop it."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from quiz_builder.api.deps import get_current_user
from quiz_builder.db.models import User
from quiz_builder.db.session import get_db
from quiz_builder.schemas.common import OkResponse
from quiz_builder.schemas.hosting import HostedSessionRead, HostRequest, HostResponse
from quiz_builder.services import hosting

router = APIRouter()


@router.post("", response_model=HostResponse, status_code=status.HTTP_201_CREATED)
def host_quiz(
    body: HostRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Snapshot the quiz into a new active session.

    409 with ``details.sessionId`` when the quiz already has one running.
    """
    hosted = hosting.host(
        db,
        body.quiz_id,
        current_user.id,
        hosting.HostOverrides(
            title=body.title,
            description=body.description,
            time_limit=body.time_limit,
            start_time=body.start_time,
            end_time=body.end_time,
        ),
    )
    return HostResponse(
        session_id=hosted.session_id,
        hosted_quiz=HostedSessionRead.model_validate(hosted),
    )


@router.get("/{quiz_id}", response_model=HostedSessionRead)
def get_active_session(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return hosting.get_active(db, quiz_id, current_user.id)


@router.post("/{session_id}/stop", response_model=OkResponse)
def stop_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    hosting.stop(db, session_id, current_user.id)
    return OkResponse()
