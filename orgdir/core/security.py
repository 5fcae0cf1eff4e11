"""JWT token helpers."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from jwt import exceptions as jwt_exceptions

from orgdir.core.config import get_settings

settings = get_settings()


def create_access_token(user_guid: UUID, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token whose subject is the user guid.

    Args:
        user_guid: Guid of the authenticated user
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims = {
        "sub": str(user_guid),
        "type": "access",
        "exp": datetime.now(UTC) + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """Decode and verify a JWT token.

    Returns:
        Decoded claims, or None if the token is invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt_exceptions.PyJWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload
