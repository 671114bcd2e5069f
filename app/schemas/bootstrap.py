"""Bootstrap request and response schemas."""

from pydantic import BaseModel, Field

from app.schemas.common import TokenResponse


class BootstrapRequest(BaseModel):
    """Create the first dashboard user."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)


class BootstrapResponse(BaseModel):
    """Bootstrap response payload."""

    user_id: str
    token: TokenResponse
