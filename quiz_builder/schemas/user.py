"""User & authentication schemas."""

import uuid
from datetime import datetime

from pydantic import EmailStr

from quiz_builder.schemas.common import ApiModel


class UserCreate(ApiModel):
    """POST /auth/register"""

    email: EmailStr
    password: str
    name: str


class UserLogin(ApiModel):
    """POST /auth/login"""

    email: EmailStr
    password: str


class UserRead(ApiModel):
    """User returned from API — never exposes password."""

    id: uuid.UUID
    email: str
    name: str
    is_active: bool
    created_at: datetime


class AuthResponse(ApiModel):
    """Combined auth response: token + user profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
