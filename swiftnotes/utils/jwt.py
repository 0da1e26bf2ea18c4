from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt

from swiftnotes.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    The hosted auth provider issues these in production; this helper exists
    for scripts and tests that need a token signed with the shared secret.

    Args:
        data: Claims to encode; ``sub`` must be the user id
        expires_delta: Optional lifetime. If None, uses default from settings.

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": now})
    if settings.JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid
    """
    options = {"require": ["exp", "sub"]}
    if settings.JWT_AUDIENCE:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={**options, "verify_aud": False},
    )
