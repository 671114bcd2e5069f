"""Request and response bodies for proxied Atlas operations."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import APIModel


class ServerResponse(APIModel):
    """Server metadata as reported by Atlas."""

    server_id: str
    name: str
    group: str
    type: str
    address: str | None = None
    port: int | None = None


class GroupResponse(APIModel):
    """Group metadata as reported by Atlas."""

    name: str
    type: str
    server_count: int


class ScaleRequest(BaseModel):
    """Scale a group up or down."""

    direction: Literal["up", "down"]
    count: int = Field(default=1, ge=1)


class ScaleResponse(APIModel):
    """Atlas scale acknowledgement."""

    status: str
    message: str


class FileContentsResponse(BaseModel):
    """Contents of one file."""

    file: str
    content: str


class WriteFileRequest(BaseModel):
    """Create or replace a file."""

    file: str = Field(min_length=1)
    content: str


class RenameFileRequest(BaseModel):
    """Rename a file. Accepts and emits camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    old_path: str = Field(min_length=1, alias="oldPath")
    new_path: str = Field(min_length=1, alias="newPath")
