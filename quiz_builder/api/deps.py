"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from quiz_builder.config import settings
from quiz_builder.core.identity import Identity
from quiz_builder.core.security import token_subject
from quiz_builder.db.models import User
from quiz_builder.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> User:
    user_id = token_subject(token)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")
    try:
        uid = uuid.UUID(user_id)
    except ValueError:
        raise _unauthorized("Invalid token payload")
    user = db.query(User).filter(User.id == uid).first()
    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Decode JWT and return the authenticated user, or 401."""
    return _user_from_token(token, db)


def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like ``get_current_user`` but None when no token is sent at all."""
    if not token:
        return None
    return _user_from_token(token, db)


def resolve_taker(user: User | None, name: str | None) -> Identity:
    """Identity of whoever is taking a quiz: the user, or an anonymous display name."""
    if user is not None:
        return Identity(user_id=user.id, name=user.name)
    if not settings.ALLOW_ANONYMOUS_TAKERS:
        raise _unauthorized("Not authenticated")
    display = (name or "").strip() or settings.ANONYMOUS_NAME
    return Identity(user_id=None, name=display)


def get_taker(
    user: User | None = Depends(get_optional_user),
    name: str | None = Query(default=None, max_length=255),
) -> Identity:
    return resolve_taker(user, name)
