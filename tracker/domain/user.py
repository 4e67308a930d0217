"""User domain models."""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """Owner profile data transfer object."""

    id: str = Field(..., description="Opaque owner ID supplied by the auth layer")
    display_name: str = Field(default="", description="Display name")
    is_public: bool = Field(default=False, description="Whether the owner's tasks can be viewed by others")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")
