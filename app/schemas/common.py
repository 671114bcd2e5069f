"""Common schema primitives."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class APIModel(BaseModel):
    """Base API model with attribute validation enabled."""

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(APIModel):
    """Return a generated token exactly once."""

    id: UUID
    token: str
    name: str


class FileActionResponse(APIModel):
    """Acknowledge a file mutation forwarded to Atlas.

    Attributes
    ----------
    message : str
        Human-readable result.
    file : str
        Path of the file as it exists after the mutation.
    """

    message: str
    file: str
