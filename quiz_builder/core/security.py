"""Password hashing and bearer-token helpers."""

import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from quiz_builder.config import settings

# bcrypt silently ignores everything past this many bytes
BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Return the bcrypt hash of *plain*.

    Raises ValueError for passwords bcrypt would truncate.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(
            f"Password must be at most {BCRYPT_MAX_BYTES} bytes (got {len(encoded)})"
        )
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT carrying *data* plus an ``exp`` claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def issue_token(user_id: uuid.UUID) -> str:
    """Access token whose subject is the user's id."""
    return create_access_token(data={"sub": str(user_id)})


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT. Returns the payload, or None when invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def token_subject(token: str) -> str | None:
    """The ``sub`` claim of a valid token, else None."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
