"""Audit logging service."""

from __future__ import annotations

import json
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlas_client import AtlasClient
from app.models.audit import AuditLog
from app.services.actions import ResourceType, is_restorable
from app.services.backup import BackupTarget, capture_backup
from app.services.context import RequestContext
from app.services.identity import resolve_server_identity
from app.services.outcomes import Degraded, Ok, Skipped

T = TypeVar("T")

LogOutcome = Union[Ok[uuid.UUID], Skipped, Degraded]

_IDENTITY_RESOURCE_TYPES = frozenset(
    {ResourceType.SERVER.value, ResourceType.FILE.value}
)


@dataclass
class AuditLogEntry:
    """One attempted operation to be journaled.

    Attributes
    ----------
    action : str
        Action tag.
    resource_type : str
        ``server``, ``group``, ``template`` or ``file``.
    resource_id : str
        Locator as supplied by the caller.
    details : dict[str, Any]
        Operation input payload.
    success : bool
        Whether the operation succeeded.
    backup_data : dict[str, Any] | None, default=None
        Captured pre-mutation state.
    restore_possible : bool | None, default=None
        Explicit override; ``None`` uses the restorable-action table.
    error_message : str | None, default=None
        Failure description.
    """

    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    backup_data: dict[str, Any] | None = None
    restore_possible: bool | None = None
    error_message: str | None = None


class AuditLogger:
    """Write audit entries without ever failing the caller.

    Entries are written through a session of their own so a storage failure
    cannot roll back or poison the caller's transaction.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for independent audit sessions.
    atlas : AtlasClient
        Atlas client used for identity enrichment.
    context : RequestContext
        Actor and provenance of the current request.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        atlas: AtlasClient,
        context: RequestContext,
    ) -> None:
        self.session_factory = session_factory
        self.atlas = atlas
        self.context = context

    async def log_action(self, entry: AuditLogEntry) -> LogOutcome:
        """Persist one audit entry.

        Parameters
        ----------
        entry : AuditLogEntry
            Entry to journal.

        Returns
        -------
        LogOutcome
            ``Ok`` with the new row id, ``Skipped`` for anonymous callers, or
            ``Degraded`` when the write failed.
        """
        if not self.context.is_authenticated:
            logger.warning("No authenticated user for audit log", action=entry.action)
            return Skipped(reason="no authenticated actor")

        try:
            resource_id, details = await self._resolve_identity(entry)
            restore_possible = (
                entry.restore_possible
                if entry.restore_possible is not None
                else is_restorable(entry.action)
            )
            row = AuditLog(
                id=uuid.uuid4(),
                user_id=self.context.actor_id,
                action=entry.action,
                resource_type=entry.resource_type,
                resource_id=resource_id,
                details=json.dumps(details, default=str),
                backup_data=(
                    json.dumps(entry.backup_data, default=str)
                    if entry.backup_data is not None
                    else None
                ),
                restore_possible=restore_possible,
                ip_address=self.context.ip_address,
                user_agent=self.context.user_agent,
                success=entry.success,
                error_message=entry.error_message,
            )
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except Exception as exc:
            logger.error(
                "Failed to create audit log",
                action=entry.action,
                resource_type=entry.resource_type,
                error=str(exc),
            )
            return Degraded(reason=str(exc) or exc.__class__.__name__)

        return Ok(row.id)

    async def _resolve_identity(
        self, entry: AuditLogEntry
    ) -> tuple[str, dict[str, Any]]:
        if entry.resource_type not in _IDENTITY_RESOURCE_TYPES:
            return entry.resource_id, dict(entry.details)
        server = entry.details.get("server")
        if not server:
            return entry.resource_id, dict(entry.details)

        outcome = await resolve_server_identity(self.atlas, str(server))
        if isinstance(outcome, Ok):
            return outcome.value.resource_id, outcome.value.enrich(entry.details)
        return str(outcome.fallback), dict(entry.details)


class AuditedOperation:
    """Wrap an Atlas mutation with backup capture and audit logging.

    Parameters
    ----------
    audit_logger : AuditLogger
        Logger bound to the current request.
    atlas : AtlasClient
        Atlas client used for backup capture.
    """

    def __init__(self, audit_logger: AuditLogger, atlas: AtlasClient) -> None:
        self.audit_logger = audit_logger
        self.atlas = atlas

    async def run(
        self,
        *,
        action: str,
        resource_type: ResourceType,
        resource_id: str,
        details: dict[str, Any],
        call: Callable[[], Awaitable[T]],
        backup: BackupTarget | None = None,
    ) -> T:
        """Run ``call`` and journal the attempt.

        Parameters
        ----------
        action : str
            Action tag.
        resource_type : ResourceType
            Kind of resource touched.
        resource_id : str
            Locator as supplied by the caller.
        details : dict[str, Any]
            Operation input payload.
        call : Callable[[], Awaitable[T]]
            The Atlas call to perform.
        backup : BackupTarget | None, default=None
            File to snapshot before ``call`` runs.

        Returns
        -------
        T
            Result of ``call``. Exceptions from ``call`` are re-raised after
            the failure has been logged.
        """
        backup_data: dict[str, Any] | None = None
        if backup is not None:
            captured = await capture_backup(self.atlas, action, backup)
            if isinstance(captured, Ok):
                backup_data = captured.value

        entry = AuditLogEntry(
            action=action,
            resource_type=resource_type.value,
            resource_id=resource_id,
            details=details,
            backup_data=backup_data,
        )
        try:
            result = await call()
        except Exception as exc:
            entry.success = False
            entry.error_message = str(exc) or "Unknown error"
            await self.audit_logger.log_action(entry)
            raise

        await self.audit_logger.log_action(entry)
        return result
