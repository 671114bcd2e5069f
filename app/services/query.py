"""Read-side access to the audit journal."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog
from app.models.user import User
from app.schemas.audit import AuditLogPage, AuditLogResponse
from app.services.actions import ACTION_TYPE_PATTERNS, ActionType, ResourceType


class ServerSearchMode(str, Enum):
    """Which server identity form to match history against."""

    ID = "id"
    NAME = "name"
    BOTH = "both"


def _like_pattern(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_predicate(search: str) -> ColumnElement[bool]:
    """Build a case-insensitive substring match over an entry.

    Parameters
    ----------
    search : str
        Free-text search term.

    Returns
    -------
    ColumnElement[bool]
        Predicate matching ``action``, ``resource_id`` or serialized details.
    """
    pattern = _like_pattern(search)
    return or_(
        AuditLog.action.ilike(pattern, escape="\\"),
        AuditLog.resource_id.ilike(pattern, escape="\\"),
        AuditLog.details.ilike(pattern, escape="\\"),
    )


def action_type_predicate(action_type: ActionType) -> ColumnElement[bool]:
    """Build a prefix match for an action category.

    Parameters
    ----------
    action_type : ActionType
        Category to filter on.

    Returns
    -------
    ColumnElement[bool]
        Predicate matching any of the category's action prefixes.
    """
    return or_(
        *(
            AuditLog.action.like(f"{prefix}%")
            for prefix in ACTION_TYPE_PATTERNS[action_type]
        )
    )


def resolve_search_mode(
    server_id: str | None,
    server_name: str | None,
    search_mode: ServerSearchMode | None = None,
) -> ServerSearchMode:
    """Derive or validate the server search mode.

    Parameters
    ----------
    server_id : str | None
        Durable server id.
    server_name : str | None
        Server display name.
    search_mode : ServerSearchMode | None, default=None
        Explicit mode; derived from the identifiers when omitted.

    Returns
    -------
    ServerSearchMode
        Mode to search with.

    Raises
    ------
    ValueError
        If the identifiers required by the mode are missing.
    """
    if search_mode is None:
        if server_id and server_name:
            return ServerSearchMode.BOTH
        if server_name:
            return ServerSearchMode.NAME
        if server_id:
            return ServerSearchMode.ID
        raise ValueError("server_id or server_name is required")

    if search_mode is ServerSearchMode.ID and not server_id:
        raise ValueError("server_id is required for id search")
    if search_mode is ServerSearchMode.NAME and not server_name:
        raise ValueError("server_name is required for name search")
    if search_mode is ServerSearchMode.BOTH and not (server_id and server_name):
        raise ValueError("server_id and server_name are required for both search")
    return search_mode


class AuditQueryService:
    """Filtered, paginated reads over the audit journal.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_audit_logs(
        self,
        *,
        resource_type: ResourceType | None = None,
        search: str | None = None,
        action_type: ActionType | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> AuditLogPage:
        """List audit entries across all resources.

        Parameters
        ----------
        resource_type : ResourceType | None, default=None
            Restrict to one resource kind.
        search : str | None, default=None
            Free-text filter.
        action_type : ActionType | None, default=None
            Restrict to one action category.
        limit : int, default=20
            Page size.
        offset : int, default=0
            Rows to skip.

        Returns
        -------
        AuditLogPage
            Entries newest first and the total matching count.
        """
        predicates = self._filters(search, action_type)
        if resource_type is not None:
            predicates.append(AuditLog.resource_type == resource_type.value)
        return await self._page(predicates, limit=limit, offset=offset)

    async def server_audit_history(
        self,
        *,
        server_id: str | None = None,
        server_name: str | None = None,
        search_mode: ServerSearchMode | None = None,
        search: str | None = None,
        action_type: ActionType | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> AuditLogPage:
        """List entries recorded against one server.

        Static servers are journaled by name and dynamic servers by id, so
        ``both`` mode matches either form.

        Parameters
        ----------
        server_id : str | None, default=None
            Durable server id.
        server_name : str | None, default=None
            Server display name.
        search_mode : ServerSearchMode | None, default=None
            Explicit identity form to match.
        search : str | None, default=None
            Free-text filter.
        action_type : ActionType | None, default=None
            Restrict to one action category.
        limit : int, default=20
            Page size.
        offset : int, default=0
            Rows to skip.

        Returns
        -------
        AuditLogPage
            Matching entries and their total count.
        """
        mode = resolve_search_mode(server_id, server_name, search_mode)
        if mode is ServerSearchMode.ID:
            identity = AuditLog.resource_id == server_id
        elif mode is ServerSearchMode.NAME:
            identity = AuditLog.resource_id == server_name
        else:
            identity = AuditLog.resource_id.in_([server_id, server_name])

        predicates = [AuditLog.resource_type == ResourceType.SERVER.value, identity]
        predicates.extend(self._filters(search, action_type))
        return await self._page(predicates, limit=limit, offset=offset)

    async def group_audit_history(
        self,
        group_id: str,
        *,
        search: str | None = None,
        action_type: ActionType | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> AuditLogPage:
        """List entries recorded against one group."""
        predicates = [
            AuditLog.resource_type == ResourceType.GROUP.value,
            AuditLog.resource_id == group_id,
        ]
        predicates.extend(self._filters(search, action_type))
        return await self._page(predicates, limit=limit, offset=offset)

    async def resource_audit_history(
        self,
        resource_type: ResourceType,
        resource_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> AuditLogPage:
        """List entries for an exact resource type and identity."""
        predicates = [
            AuditLog.resource_type == resource_type.value,
            AuditLog.resource_id == resource_id,
        ]
        return await self._page(predicates, limit=limit, offset=offset)

    async def recent_activity(self, limit: int = 10) -> list[AuditLogResponse]:
        """Return the latest successful entries."""
        page = await self._page([AuditLog.success.is_(True)], limit=limit, offset=0)
        return page.logs

    def _filters(
        self, search: str | None, action_type: ActionType | None
    ) -> list[ColumnElement[bool]]:
        predicates: list[ColumnElement[bool]] = []
        if search:
            predicates.append(search_predicate(search))
        if action_type is not None:
            predicates.append(action_type_predicate(action_type))
        return predicates

    async def _page(
        self, predicates: list[ColumnElement[bool]], *, limit: int, offset: int
    ) -> AuditLogPage:
        rows = await self.session.execute(
            select(AuditLog, User.name, User.email)
            .outerjoin(User, User.id == AuditLog.user_id)
            .where(*predicates)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        total = await self.session.scalar(
            select(func.count()).select_from(AuditLog).where(*predicates)
        )
        return AuditLogPage(
            logs=[_to_response(log, name, email) for log, name, email in rows.all()],
            total=total or 0,
        )


def _to_response(
    log: AuditLog, user_name: str | None, user_email: str | None
) -> AuditLogResponse:
    details = _decode(log.details)
    backup_data = _decode(log.backup_data)
    return AuditLogResponse(
        id=log.id,
        user_id=log.user_id,
        user_name=user_name,
        user_email=user_email,
        action=log.action,
        resource_type=log.resource_type,
        resource_id=log.resource_id,
        details=details if isinstance(details, dict) else {},
        backup_data=backup_data if isinstance(backup_data, dict) else None,
        restore_possible=log.restore_possible,
        restored_at=log.restored_at,
        restored_by=log.restored_by,
        ip_address=log.ip_address,
        user_agent=log.user_agent,
        timestamp=log.timestamp,
        success=log.success,
        error_message=log.error_message,
    )


def _decode(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None
