"""Audit history and restore schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.schemas.common import APIModel


class AuditLogResponse(APIModel):
    """Audit log entry with decoded payloads and actor details."""

    id: UUID
    user_id: UUID
    user_name: str | None = None
    user_email: str | None = None
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any]
    backup_data: dict[str, Any] | None = None
    restore_possible: bool
    restored_at: datetime | None = None
    restored_by: UUID | None = None
    ip_address: str
    user_agent: str
    timestamp: datetime
    success: bool
    error_message: str | None = None


class AuditLogPage(BaseModel):
    """One page of audit history."""

    logs: list[AuditLogResponse]
    total: int


class RestoreResponse(BaseModel):
    """Outcome of a restore request."""

    success: bool
    message: str
