"""ORM models."""

from app.models.audit import AuditLog
from app.models.user import User

__all__ = [
    "AuditLog",
    "User",
]
