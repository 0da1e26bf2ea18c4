import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from swiftnotes.db import get_session
from swiftnotes.logging_config import get_logger
from swiftnotes.utils.jwt import decode_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller, taken from the access token only."""
    id: str
    email: Optional[str] = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected access token: {e}")
        raise _unauthorized("Invalid token")

    try:
        user_id = str(uuid.UUID(str(payload["sub"])))
    except (KeyError, ValueError):
        raise _unauthorized("Invalid token subject")

    return CurrentUser(id=user_id, email=payload.get("email"))
