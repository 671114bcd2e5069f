"""Bootstrap routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.user import User
from app.routers.dependencies import commit_session
from app.schemas.bootstrap import BootstrapRequest, BootstrapResponse
from app.schemas.common import TokenResponse
from app.services.auth import ensure_bootstrap_allowed
from app.services.security import issue_token

router = APIRouter(prefix="/v1", tags=["bootstrap"])


@router.post("/bootstrap", response_model=BootstrapResponse)
async def bootstrap(
    payload: BootstrapRequest,
    session: AsyncSession = Depends(get_session),
) -> BootstrapResponse:
    """Create the first dashboard user and its bearer token.

    Parameters
    ----------
    payload : BootstrapRequest
        Bootstrap request.
    session : AsyncSession
        Active database session.

    Returns
    -------
    BootstrapResponse
        Created user and its token, shown once.
    """
    if not get_settings().bootstrap_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Bootstrap disabled",
        )
    await ensure_bootstrap_allowed(session)

    issued = issue_token()
    user = User(
        name=payload.name,
        email=payload.email,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(user)
    await session.flush()
    await commit_session(session)
    logger.info("Bootstrapped first user", user_id=str(user.id))
    return BootstrapResponse(
        user_id=str(user.id),
        token=TokenResponse(id=user.id, token=issued.plaintext, name=user.name),
    )
