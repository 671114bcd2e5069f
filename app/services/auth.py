"""Authentication dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.services.context import RequestContext
from app.services.security import lookup_hash, verify_token

bearer_scheme = HTTPBearer(auto_error=False)


async def optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """Resolve the calling user if a valid token is presented.

    Parameters
    ----------
    credentials : HTTPAuthorizationCredentials | None
        Parsed bearer token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    User | None
        Authenticated user, or ``None`` for anonymous callers.
    """
    if credentials is None:
        return None
    user = await _match_user(session, credentials.credentials)
    if user is None:
        logger.debug("Bearer token did not match an active user")
    return user


async def require_user(user: User | None = Depends(optional_user)) -> User:
    """Require an authenticated user.

    Parameters
    ----------
    user : User | None
        Result of optional authentication.

    Returns
    -------
    User
        Authenticated user.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


async def get_request_context(
    request: Request,
    user: User = Depends(require_user),
) -> RequestContext:
    """Build the audit context for an authenticated request.

    Parameters
    ----------
    request : Request
        Incoming request.
    user : User
        Authenticated user.

    Returns
    -------
    RequestContext
        Actor and provenance for audit writes.
    """
    return RequestContext.from_headers(
        user.id,
        request.headers,
        client_host=request.client.host if request.client else None,
    )


async def ensure_bootstrap_allowed(session: AsyncSession) -> None:
    """Ensure no user exists yet.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Raises when bootstrap is already complete.
    """
    result = await session.execute(select(User.id).limit(1))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bootstrap already completed",
        )


async def _match_user(session: AsyncSession, raw_token: str) -> User | None:
    """Match a raw token against stored user hashes.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    raw_token : str
        Raw bearer token.

    Returns
    -------
    User | None
        Matching, non-revoked user if found.
    """
    result = await session.execute(
        select(User).where(
            User.token_lookup == lookup_hash(raw_token),
            User.revoked_at.is_(None),
        )
    )
    for row in result.scalars().all():
        if verify_token(raw_token, row.token_hash):
            return row
    return None
