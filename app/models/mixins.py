"""Shared model helpers."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Return the current timezone-aware UTC time.

    Returns
    -------
    datetime
        Current UTC timestamp.
    """
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Creation timestamp column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


def uuid_column() -> Mapped[uuid.UUID]:
    """Return a UUID primary-key column generated at insert time.

    Returns
    -------
    Mapped[uuid.UUID]
        SQLAlchemy mapped UUID column.
    """
    return mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
