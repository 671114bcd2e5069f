"""Replay the inverse of a journaled action."""

from __future__ import annotations

import json
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlas_client import AtlasClient
from app.models.audit import AuditLog
from app.models.mixins import utcnow
from app.services.actions import RESTORABLE_ACTIONS, RESTORE_ACTION_PREFIX
from app.services.audit import AuditLogEntry, AuditLogger
from app.services.backup import FileContentBackup, RenameBackup
from app.services.context import RequestContext
from app.services.identity import server_id_for_restore

RESTORED_MESSAGE = "Action restored successfully"
NOT_RESTORABLE_MESSAGE = "Audit log not found or not restorable"
NO_BACKUP_MESSAGE = "No backup data available"
UNSUPPORTED_MESSAGE = "Unsupported restore action"
UNAUTHORIZED_MESSAGE = "Unauthorized"


class RestoreError(Exception):
    """A journaled action could not be replayed."""


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Outcome of a restore request."""

    success: bool
    message: str


@dataclass(frozen=True, slots=True)
class RestoreTarget:
    """Fields of the original entry a handler may need."""

    resource_id: str
    details: dict[str, Any]


ReplayFn = Callable[[AtlasClient, RestoreTarget, Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RestoreHandler:
    """Inverse operation for one restorable action tag.

    Attributes
    ----------
    action : str
        Action tag handled.
    payload_model : type[BaseModel]
        Shape of the backup payload the handler expects.
    replay : ReplayFn
        Coroutine performing the inverse against Atlas.
    """

    action: str
    payload_model: type[BaseModel]
    replay: ReplayFn


RESTORE_HANDLERS: dict[str, RestoreHandler] = {}


def restore_handler(
    action: str, payload_model: type[BaseModel]
) -> Callable[[ReplayFn], ReplayFn]:
    """Register the inverse of a restorable action.

    Parameters
    ----------
    action : str
        Action tag; must be in the restorable-action table.
    payload_model : type[BaseModel]
        Backup payload model validated before replay.

    Returns
    -------
    Callable[[ReplayFn], ReplayFn]
        Decorator registering the replay coroutine.
    """
    if action not in RESTORABLE_ACTIONS:
        raise ValueError(f"{action} is not a restorable action")

    def register(replay: ReplayFn) -> ReplayFn:
        RESTORE_HANDLERS[action] = RestoreHandler(action, payload_model, replay)
        return replay

    return register


def _file_path(backup: FileContentBackup, target: RestoreTarget) -> str:
    path = backup.file_path or target.details.get("file")
    if not path:
        raise RestoreError("File path not found in backup data or details")
    return str(path)


def _renamed_path(target: RestoreTarget) -> str:
    new_path = target.details.get("newPath")
    if not new_path:
        raise RestoreError("Renamed path not found in details")
    return str(new_path)


@restore_handler("deleteServerFile", FileContentBackup)
async def _recreate_server_file(
    atlas: AtlasClient, target: RestoreTarget, backup: FileContentBackup
) -> None:
    server_id = await server_id_for_restore(atlas, target.resource_id)
    await atlas.write_server_file_contents(
        server_id, _file_path(backup, target), backup.original_content
    )


@restore_handler("deleteTemplateFile", FileContentBackup)
async def _recreate_template_file(
    atlas: AtlasClient, target: RestoreTarget, backup: FileContentBackup
) -> None:
    await atlas.write_template_file_contents(
        _file_path(backup, target), backup.original_content
    )


@restore_handler("writeServerFileContents", FileContentBackup)
async def _revert_server_file(
    atlas: AtlasClient, target: RestoreTarget, backup: FileContentBackup
) -> None:
    server_id = await server_id_for_restore(atlas, target.resource_id)
    await atlas.write_server_file_contents(
        server_id, _file_path(backup, target), backup.original_content
    )


@restore_handler("writeTemplateFileContents", FileContentBackup)
async def _revert_template_file(
    atlas: AtlasClient, target: RestoreTarget, backup: FileContentBackup
) -> None:
    await atlas.write_template_file_contents(
        _file_path(backup, target), backup.original_content
    )


@restore_handler("renameServerFile", RenameBackup)
async def _unrename_server_file(
    atlas: AtlasClient, target: RestoreTarget, backup: RenameBackup
) -> None:
    server_id = await server_id_for_restore(atlas, target.resource_id)
    await atlas.rename_server_file(
        server_id, old_path=_renamed_path(target), new_path=backup.original_path
    )


@restore_handler("renameTemplateFile", RenameBackup)
async def _unrename_template_file(
    atlas: AtlasClient, target: RestoreTarget, backup: RenameBackup
) -> None:
    await atlas.rename_template_file(
        old_path=_renamed_path(target), new_path=backup.original_path
    )


class RestoreExecutor:
    """Restore journaled actions at most once.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for the claim-and-replay transaction.
    atlas : AtlasClient
        Atlas client the inverse is sent to.
    context : RequestContext
        Actor performing the restore.
    audit_logger : AuditLogger
        Logger used to journal the restore itself.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        atlas: AtlasClient,
        context: RequestContext,
        audit_logger: AuditLogger,
    ) -> None:
        self.session_factory = session_factory
        self.atlas = atlas
        self.context = context
        self.audit_logger = audit_logger

    async def restore_action(self, audit_log_id: uuid.UUID) -> RestoreResult:
        """Replay the inverse of an audit entry.

        The entry is claimed with a conditional update in the same transaction
        as the replay, so two concurrent requests cannot both restore it and a
        failed replay leaves it restorable.

        Parameters
        ----------
        audit_log_id : uuid.UUID
            Entry to restore.

        Returns
        -------
        RestoreResult
            Success flag and a human-readable message.
        """
        if not self.context.is_authenticated:
            return RestoreResult(False, UNAUTHORIZED_MESSAGE)

        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(AuditLog).where(
                        AuditLog.id == audit_log_id,
                        AuditLog.restore_possible.is_(True),
                        AuditLog.restored_at.is_(None),
                        AuditLog.success.is_(True),
                    )
                )
                entry = result.scalar_one_or_none()
                if entry is None:
                    return RestoreResult(False, NOT_RESTORABLE_MESSAGE)

                raw_backup = _loads(entry.backup_data)
                if not raw_backup:
                    return RestoreResult(False, NO_BACKUP_MESSAGE)

                handler = RESTORE_HANDLERS.get(entry.action)
                if handler is None:
                    return RestoreResult(False, UNSUPPORTED_MESSAGE)

                try:
                    payload = handler.payload_model.model_validate(raw_backup)
                except ValidationError:
                    return RestoreResult(False, NO_BACKUP_MESSAGE)

                action = entry.action
                resource_type = entry.resource_type
                resource_id = entry.resource_id
                details = _loads(entry.details)
                target = RestoreTarget(
                    resource_id, details if isinstance(details, dict) else {}
                )

                claimed = await session.execute(
                    update(AuditLog)
                    .where(AuditLog.id == audit_log_id, AuditLog.restored_at.is_(None))
                    .values(restored_at=utcnow(), restored_by=self.context.actor_id)
                    .execution_options(synchronize_session=False)
                )
                if claimed.rowcount != 1:
                    await session.rollback()
                    return RestoreResult(False, NOT_RESTORABLE_MESSAGE)

                try:
                    await handler.replay(self.atlas, target, payload)
                except Exception:
                    await session.rollback()
                    raise
                await session.commit()
        except Exception as exc:
            logger.error(
                "Failed to restore action",
                audit_log_id=str(audit_log_id),
                error=str(exc),
            )
            return RestoreResult(False, str(exc) or "Restore failed")

        await self.audit_logger.log_action(
            AuditLogEntry(
                action=f"{RESTORE_ACTION_PREFIX}{action}",
                resource_type=resource_type,
                resource_id=resource_id,
                details={"originalAuditLogId": str(audit_log_id)},
                restore_possible=False,
            )
        )
        logger.info("Restored action", audit_log_id=str(audit_log_id), action=action)
        return RestoreResult(True, RESTORED_MESSAGE)


def _loads(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None
