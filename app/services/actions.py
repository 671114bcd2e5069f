"""Audited action tags and the static restorable-action table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

TEMPLATE_RESOURCE_ID = "global"
RESTORE_ACTION_PREFIX = "restore_"


class ResourceType(str, Enum):
    """Kinds of resource an audit entry can refer to."""

    SERVER = "server"
    GROUP = "group"
    TEMPLATE = "template"
    FILE = "file"


class FileScope(str, Enum):
    """Where a file lives."""

    SERVER = "server"
    TEMPLATE = "template"


class BackupKind(str, Enum):
    """What has to be captured before the action runs."""

    CONTENT = "content"
    PATH = "path"


class ActionType(str, Enum):
    """Coarse action categories used for filtering history."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class RestorableAction:
    """Static description of a reversible action.

    Attributes
    ----------
    name : str
        Action tag written by the logger and dispatched on by the restorer.
    scope : FileScope
        Whether the file lives on a server or in the global templates.
    backup : BackupKind
        Pre-mutation state that must be captured.
    """

    name: str
    scope: FileScope
    backup: BackupKind


RESTORABLE_ACTIONS: dict[str, RestorableAction] = {
    action.name: action
    for action in (
        RestorableAction("deleteServerFile", FileScope.SERVER, BackupKind.CONTENT),
        RestorableAction("deleteTemplateFile", FileScope.TEMPLATE, BackupKind.CONTENT),
        RestorableAction(
            "writeServerFileContents", FileScope.SERVER, BackupKind.CONTENT
        ),
        RestorableAction(
            "writeTemplateFileContents", FileScope.TEMPLATE, BackupKind.CONTENT
        ),
        RestorableAction("renameServerFile", FileScope.SERVER, BackupKind.PATH),
        RestorableAction("renameTemplateFile", FileScope.TEMPLATE, BackupKind.PATH),
    )
}

# Prefixes matched against the start of the action tag.
ACTION_TYPE_PATTERNS: dict[ActionType, tuple[str, ...]] = {
    ActionType.CREATE: ("create", "upload", "zip", "unzip"),
    ActionType.READ: ("get", "download", "list"),
    ActionType.UPDATE: ("write", "rename", "move", "restart", "scale"),
    ActionType.DELETE: ("delete",),
}


def is_restorable(action: str) -> bool:
    """Return whether an action tag is in the restorable table.

    Parameters
    ----------
    action : str
        Action tag.

    Returns
    -------
    bool
        Whether entries for this action can be restored.
    """
    return action in RESTORABLE_ACTIONS
