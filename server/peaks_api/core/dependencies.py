"""FastAPI dependencies for database sessions and authentication."""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User, UserRole
from .config import settings
from .database import get_db, utcnow
from .exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


def create_access_token(user_id: UUID | str, expires_in: timedelta = timedelta(hours=12)) -> str:
    """Issue a signed bearer token for a user."""
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=TOKEN_ALGORITHM)


def _parse_authorization(authorization: str) -> str:
    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format")
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")
    return token


async def _user_from_token(token: str, db: AsyncSession) -> User:
    try:
        # exp is verified by PyJWT when present
        payload = jwt.decode(token, settings.bearer_token_secret, algorithms=[TOKEN_ALGORITHM])
    except PyJWTError as e:
        logger.info("Bearer token rejected", extra={"reason": str(e)})
        raise AuthenticationError(f"Token validation failed: {e}")

    subject = payload.get("sub")
    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("Unknown user")
    return user


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token
        db: Database session used to load the user

    Returns:
        User: The authenticated user

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError("Authorization header missing")
    return await _user_from_token(_parse_authorization(authorization), db)


async def get_optional_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like :func:`get_current_user` but anonymous requests yield ``None``."""
    if not authorization:
        return None
    return await _user_from_token(_parse_authorization(authorization), db)


async def require_operator(user: User = Depends(get_current_user)) -> User:
    """Allow tour operators (guides) and admins."""
    if not user.is_operator:
        raise AuthorizationError(
            "Operator access required",
            required_roles=[UserRole.GUIDE.value, UserRole.ADMIN.value],
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow admins only."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required", required_roles=[UserRole.ADMIN.value])
    return user
