"""Server identity resolution.

Static servers keep their display name across redeploys, so the name is the
canonical identity stored in ``resource_id``. Dynamic servers are ephemeral and
may reuse names, so their durable id is stored instead. Both forms are copied
into ``details`` regardless.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from loguru import logger

from atlas_client import AtlasClient, AtlasError
from app.services.outcomes import Degraded, Ok, Outcome

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class ServerNameResolutionError(Exception):
    """A display name no longer maps to a live server."""


@dataclass(frozen=True, slots=True)
class ServerIdentity:
    """Resolved identity of a server at audit time.

    Attributes
    ----------
    resource_id : str
        Canonical identity: name for static servers, id for dynamic ones.
    server_id : str
        Durable identifier.
    server_name : str
        Display name.
    server_type : str
        ``"static"`` or ``"dynamic"``.
    """

    resource_id: str
    server_id: str
    server_name: str
    server_type: str

    def enrich(self, details: dict[str, Any]) -> dict[str, Any]:
        """Return ``details`` with both identity forms added.

        Parameters
        ----------
        details : dict[str, Any]
            Operation input payload.

        Returns
        -------
        dict[str, Any]
            Copy including ``serverId``, ``serverName`` and ``serverType``.
        """
        return {
            **details,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "serverType": self.server_type,
        }


def is_uuid(value: str) -> bool:
    """Return whether ``value`` is shaped like a durable identifier.

    Parameters
    ----------
    value : str
        Candidate identifier.

    Returns
    -------
    bool
        ``True`` for UUID-shaped strings; anything else is a display name.
    """
    return bool(UUID_PATTERN.match(value))


async def resolve_server_identity(
    atlas: AtlasClient, locator: str
) -> Outcome[ServerIdentity]:
    """Resolve the canonical identity for a server locator.

    Parameters
    ----------
    atlas : AtlasClient
        Atlas client.
    locator : str
        Server id or name as supplied by the caller.

    Returns
    -------
    Outcome[ServerIdentity]
        ``Ok`` with the resolved identity, or ``Degraded`` carrying the raw
        locator as fallback when the server could not be fetched or parsed.
    """
    try:
        server = await atlas.get_server(locator)
    except Exception as exc:
        logger.warning(
            "Could not fetch server for audit log, using provided value",
            locator=locator,
            error=str(exc),
        )
        return Degraded(reason=str(exc) or exc.__class__.__name__, fallback=locator)

    return Ok(
        ServerIdentity(
            resource_id=server.name if server.is_static else server.server_id,
            server_id=server.server_id,
            server_name=server.name,
            server_type="static" if server.is_static else "dynamic",
        )
    )


async def get_server_id_from_name(atlas: AtlasClient, server_name: str) -> str:
    """Map a display name back to a durable identifier.

    Parameters
    ----------
    atlas : AtlasClient
        Atlas client.
    server_name : str
        Display name recorded in an audit entry.

    Returns
    -------
    str
        Durable server identifier.

    Raises
    ------
    ServerNameResolutionError
        If no live server carries the name or Atlas is unreachable.
    """
    try:
        servers = await atlas.list_servers()
    except AtlasError as exc:
        logger.error("Failed to list servers", server_name=server_name, error=str(exc))
        raise ServerNameResolutionError(
            f'Could not resolve server name "{server_name}" to server ID'
        ) from exc

    for server in servers:
        if server.name == server_name:
            return server.server_id
    raise ServerNameResolutionError(
        f'Could not resolve server name "{server_name}" to server ID'
    )


async def server_id_for_restore(atlas: AtlasClient, resource_id: str) -> str:
    """Return a durable id usable for replaying an action.

    Parameters
    ----------
    atlas : AtlasClient
        Atlas client.
    resource_id : str
        Identity stored on the audit entry. Older entries stored
        ``<server>:<path>``; only the server part is used.

    Returns
    -------
    str
        Durable server identifier.
    """
    identifier = resource_id.split(":", 1)[0]
    if is_uuid(identifier):
        return identifier
    return await get_server_id_from_name(atlas, identifier)
