"""Async client for the Atlas server-management API."""

from atlas_client.client import AtlasClient
from atlas_client.exceptions import (
    AtlasAPIError,
    AtlasAuthError,
    AtlasConflictError,
    AtlasError,
    AtlasNotFoundError,
    AtlasRateLimitError,
    AtlasValidationError,
)
from atlas_client.types import GroupInfo, ScaleResult, ServerInfo

__all__ = [
    "AtlasAPIError",
    "AtlasAuthError",
    "AtlasClient",
    "AtlasConflictError",
    "AtlasError",
    "AtlasNotFoundError",
    "AtlasRateLimitError",
    "AtlasValidationError",
    "GroupInfo",
    "ScaleResult",
    "ServerInfo",
]
