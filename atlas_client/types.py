"""Atlas response types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DYNAMIC_SERVER_TYPE = "DYNAMIC"


@dataclass(frozen=True, slots=True)
class ServerInfo:
    """Server record returned by Atlas.

    Attributes
    ----------
    server_id : str
        Durable, UUID-shaped server identifier.
    name : str
        Human display name.
    group : str
        Owning group name.
    type : str
        Lifecycle type, ``"DYNAMIC"`` for ephemeral servers.
    address : str | None
        Advertised address.
    port : int | None
        Advertised port.
    """

    server_id: str
    name: str
    group: str
    type: str
    address: str | None = None
    port: int | None = None

    @property
    def is_static(self) -> bool:
        """Return whether the server is statically configured.

        Returns
        -------
        bool
            ``True`` unless the server type is ``DYNAMIC``.
        """
        return self.type != DYNAMIC_SERVER_TYPE

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ServerInfo":
        """Build a server record from an Atlas JSON object.

        Parameters
        ----------
        data : dict[str, Any]
            Raw ``data`` object from Atlas.

        Returns
        -------
        ServerInfo
            Parsed server record.
        """
        return cls(
            server_id=data["serverId"],
            name=data["name"],
            group=data.get("group", ""),
            type=data.get("type", ""),
            address=data.get("address"),
            port=data.get("port"),
        )


@dataclass(frozen=True, slots=True)
class GroupInfo:
    """Scaling group summary.

    Attributes
    ----------
    name : str
        Group name.
    type : str
        Group lifecycle type.
    server_count : int
        Number of servers currently in the group.
    """

    name: str
    type: str
    server_count: int

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "GroupInfo":
        """Build a group record from an Atlas JSON object.

        Parameters
        ----------
        data : dict[str, Any]
            Raw group object from Atlas.

        Returns
        -------
        GroupInfo
            Parsed group record.
        """
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            server_count=int(data.get("serverCount", 0)),
        )


@dataclass(frozen=True, slots=True)
class ScaleResult:
    """Outcome of a scale request.

    Attributes
    ----------
    status : str
        Atlas status string.
    message : str
        Human-readable message.
    """

    status: str
    message: str
