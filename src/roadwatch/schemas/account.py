"""Account-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    """Profile and balance of the authenticated user."""

    id: str
    full_name: str
    avatar_url: str | None = None
    tokens: int
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Self-service profile edit. Balance and admin flag are not accepted."""

    full_name: str | None = Field(
        None,
        min_length=1,
        max_length=100,
        description="Display name (1-100 characters)",
    )
    avatar_url: str | None = Field(None, max_length=2048, description="Avatar image URL")

    model_config = ConfigDict(extra="forbid")
