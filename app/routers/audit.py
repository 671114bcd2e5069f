"""Audit history and restore routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import get_settings
from app.routers.dependencies import get_query_service, get_restore_executor
from app.schemas.audit import AuditLogPage, AuditLogResponse, RestoreResponse
from app.services.actions import ActionType, ResourceType
from app.services.auth import require_user
from app.services.query import AuditQueryService, ServerSearchMode
from app.services.restore import RestoreExecutor

router = APIRouter(
    prefix="/v1/audit", tags=["audit"], dependencies=[Depends(require_user)]
)


def page_params(
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
) -> tuple[int, int]:
    """Clamp pagination parameters to configured bounds.

    Parameters
    ----------
    limit : int | None
        Requested page size.
    offset : int
        Rows to skip.

    Returns
    -------
    tuple[int, int]
        Effective limit and offset.
    """
    settings = get_settings()
    effective = limit or settings.audit_default_page_size
    return min(effective, settings.audit_max_page_size), offset


@router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    resource_type: ResourceType | None = None,
    search: str | None = None,
    action_type: ActionType | None = None,
    page: tuple[int, int] = Depends(page_params),
    service: AuditQueryService = Depends(get_query_service),
) -> AuditLogPage:
    """List audit entries across all resources."""
    limit, offset = page
    return await service.list_audit_logs(
        resource_type=resource_type,
        search=search,
        action_type=action_type,
        limit=limit,
        offset=offset,
    )


@router.get("/servers", response_model=AuditLogPage)
async def server_audit_history(
    server_id: str | None = None,
    server_name: str | None = None,
    search_mode: ServerSearchMode | None = None,
    search: str | None = None,
    action_type: ActionType | None = None,
    page: tuple[int, int] = Depends(page_params),
    service: AuditQueryService = Depends(get_query_service),
) -> AuditLogPage:
    """List entries recorded against one server."""
    limit, offset = page
    try:
        return await service.server_audit_history(
            server_id=server_id,
            server_name=server_name,
            search_mode=search_mode,
            search=search,
            action_type=action_type,
            limit=limit,
            offset=offset,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/groups/{group_id}", response_model=AuditLogPage)
async def group_audit_history(
    group_id: str,
    search: str | None = None,
    action_type: ActionType | None = None,
    page: tuple[int, int] = Depends(page_params),
    service: AuditQueryService = Depends(get_query_service),
) -> AuditLogPage:
    """List entries recorded against one group."""
    limit, offset = page
    return await service.group_audit_history(
        group_id, search=search, action_type=action_type, limit=limit, offset=offset
    )


@router.get("/resources/{resource_type}/{resource_id}", response_model=AuditLogPage)
async def resource_audit_history(
    resource_type: ResourceType,
    resource_id: str,
    page: tuple[int, int] = Depends(page_params),
    service: AuditQueryService = Depends(get_query_service),
) -> AuditLogPage:
    """List entries for one exact resource."""
    limit, offset = page
    return await service.resource_audit_history(
        resource_type, resource_id, limit=limit, offset=offset
    )


@router.get("/recent", response_model=list[AuditLogResponse])
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    service: AuditQueryService = Depends(get_query_service),
) -> list[AuditLogResponse]:
    """Return the latest successful entries."""
    return await service.recent_activity(limit)


@router.post("/{audit_log_id}/restore", response_model=RestoreResponse)
async def restore_action(
    audit_log_id: UUID,
    executor: RestoreExecutor = Depends(get_restore_executor),
) -> RestoreResponse:
    """Replay the inverse of a journaled action.

    Parameters
    ----------
    audit_log_id : UUID
        Entry to restore.
    executor : RestoreExecutor
        Restore executor for the calling user.

    Returns
    -------
    RestoreResponse
        Success flag and message. Refusals are reported in the body, not as
        HTTP errors.
    """
    result = await executor.restore_action(audit_log_id)
    return RestoreResponse(success=result.success, message=result.message)
