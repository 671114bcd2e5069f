"""Atlas client exception types."""

from __future__ import annotations


class AtlasError(Exception):
    """Base Atlas client error."""


class AtlasAPIError(AtlasError):
    """Atlas request failed.

    Parameters
    ----------
    message : str
        Error message.
    status_code : int | None, default=None
        HTTP status code if available.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AtlasAuthError(AtlasAPIError):
    """API key was rejected."""


class AtlasValidationError(AtlasAPIError):
    """Request payload or client configuration was invalid."""


class AtlasNotFoundError(AtlasAPIError):
    """Server, group, or file was not found."""


class AtlasConflictError(AtlasAPIError):
    """Request conflicted with current server state."""


class AtlasRateLimitError(AtlasAPIError):
    """Caller hit an Atlas rate limit."""
