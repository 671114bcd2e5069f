"""Request-scoped actor and provenance."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from app.models.audit import UNKNOWN_PROVENANCE


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Who is acting and where the request came from.

    Built once per request by a FastAPI dependency and passed explicitly into
    the audit services.

    Attributes
    ----------
    actor_id : uuid.UUID | None
        Authenticated user, ``None`` for anonymous callers.
    ip_address : str
        Client address, ``"unknown"`` when not determinable.
    user_agent : str
        Client user agent, ``"unknown"`` when absent.
    """

    actor_id: uuid.UUID | None
    ip_address: str = UNKNOWN_PROVENANCE
    user_agent: str = UNKNOWN_PROVENANCE

    @property
    def is_authenticated(self) -> bool:
        """Return whether an actor is attached."""
        return self.actor_id is not None

    @classmethod
    def from_headers(
        cls,
        actor_id: uuid.UUID | None,
        headers: Mapping[str, str],
        client_host: str | None = None,
    ) -> "RequestContext":
        """Build a context from request headers.

        Parameters
        ----------
        actor_id : uuid.UUID | None
            Authenticated user identifier.
        headers : Mapping[str, str]
            Case-insensitive request headers.
        client_host : str | None, default=None
            Socket peer address.

        Returns
        -------
        RequestContext
            Populated context.
        """
        forwarded = headers.get("x-forwarded-for", "")
        ip_address = (
            forwarded.split(",")[0].strip()
            or headers.get("x-real-ip", "").strip()
            or client_host
            or UNKNOWN_PROVENANCE
        )
        user_agent = headers.get("user-agent") or UNKNOWN_PROVENANCE
        return cls(
            actor_id=actor_id, ip_address=ip_address, user_agent=user_agent[:512]
        )
