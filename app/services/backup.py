"""Pre-mutation snapshots for restorable actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from atlas_client import AtlasClient
from app.services.actions import RESTORABLE_ACTIONS, BackupKind, FileScope
from app.services.outcomes import Degraded, Ok, Outcome


class FileContentBackup(BaseModel):
    """Content of a file before it was written or deleted."""

    model_config = ConfigDict(populate_by_name=True)

    original_content: str = Field(alias="originalContent")
    file_path: str | None = Field(default=None, alias="filePath")


class RenameBackup(BaseModel):
    """Path of a file before it was renamed."""

    model_config = ConfigDict(populate_by_name=True)

    original_path: str = Field(alias="originalPath")


@dataclass(frozen=True, slots=True)
class BackupTarget:
    """File an action is about to mutate.

    Attributes
    ----------
    path : str
        File path, or the path before a rename.
    server : str | None
        Server locator for server-scoped files, ``None`` for templates.
    """

    path: str
    server: str | None = None


async def capture_backup(
    atlas: AtlasClient, action: str, target: BackupTarget
) -> Outcome[dict[str, Any]]:
    """Capture the state needed to reverse ``action``.

    Must be awaited before the mutation is sent to Atlas.

    Parameters
    ----------
    atlas : AtlasClient
        Atlas client.
    action : str
        Action tag about to run.
    target : BackupTarget
        File the action operates on.

    Returns
    -------
    Outcome[dict[str, Any]]
        ``Ok`` with the JSON-ready backup payload, or ``Degraded`` when the
        action is not restorable or the current state could not be fetched.
    """
    restorable = RESTORABLE_ACTIONS.get(action)
    if restorable is None:
        return Degraded(reason="action is not restorable")

    if restorable.backup is BackupKind.PATH:
        return Ok(RenameBackup(original_path=target.path).model_dump(by_alias=True))

    try:
        if restorable.scope is FileScope.TEMPLATE:
            content = await atlas.get_template_file_contents(target.path)
        elif target.server is None:
            return Degraded(reason="server locator is required for server files")
        else:
            content = await atlas.get_server_file_contents(target.server, target.path)
    except Exception as exc:
        logger.error(
            "Failed to create backup",
            action=action,
            server=target.server,
            path=target.path,
            error=str(exc),
        )
        return Degraded(reason=str(exc) or exc.__class__.__name__)

    return Ok(
        FileContentBackup(original_content=content, file_path=target.path).model_dump(
            by_alias=True
        )
    )
