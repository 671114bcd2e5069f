"""Shared router helpers."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlas_client import AtlasClient
from app.database import get_session, get_session_factory
from app.services.audit import AuditedOperation, AuditLogger
from app.services.auth import get_request_context
from app.services.context import RequestContext
from app.services.query import AuditQueryService
from app.services.restore import RestoreExecutor


async def commit_session(session: AsyncSession) -> None:
    """Commit the current transaction.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Commits current transaction.
    """
    await session.commit()


def get_atlas_client(request: Request) -> AtlasClient:
    """Return the Atlas client created at startup.

    Parameters
    ----------
    request : Request
        Incoming request.

    Returns
    -------
    AtlasClient
        Shared Atlas client.
    """
    atlas = getattr(request.app.state, "atlas", None)
    if atlas is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Atlas API is not configured",
        )
    return atlas


def get_audit_logger(
    context: RequestContext = Depends(get_request_context),
    atlas: AtlasClient = Depends(get_atlas_client),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AuditLogger:
    """Build an audit logger bound to the current request."""
    return AuditLogger(session_factory, atlas, context)


def get_audited_operation(
    audit_logger: AuditLogger = Depends(get_audit_logger),
    atlas: AtlasClient = Depends(get_atlas_client),
) -> AuditedOperation:
    """Build the audit wrapper for mutating routes."""
    return AuditedOperation(audit_logger, atlas)


def get_restore_executor(
    context: RequestContext = Depends(get_request_context),
    atlas: AtlasClient = Depends(get_atlas_client),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> RestoreExecutor:
    """Build a restore executor for the current actor."""
    return RestoreExecutor(session_factory, atlas, context, audit_logger)


def get_query_service(
    session: AsyncSession = Depends(get_session),
) -> AuditQueryService:
    """Build the audit query service."""
    return AuditQueryService(session)

