"""Location domain model."""

from pydantic import BaseModel, Field


class Location(BaseModel):
    """A franchise location (store) that completes tasks."""

    id: str = Field(..., description="Unique location ID")
    name: str = Field(..., description="Display name")
    store_number: str = Field(default="", description="Store number shown on the leaderboard")
    tenant_id: str | None = Field(default=None, description="Owning tenant")
    is_active: bool = Field(default=True, description="Inactive locations are excluded from rankings")
