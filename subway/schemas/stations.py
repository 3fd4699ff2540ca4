"""Pydantic schemas for stations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StationRequest(BaseModel):
    """Request to create a station."""

    name: str = Field(..., min_length=1, max_length=255, description="Station display name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        stripped = v.strip()
        if not stripped:
            msg = "Station name must not be blank"
            raise ValueError(msg)
        return stripped


class StationResponse(BaseModel):
    """Station representation embedded in favorites and station listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime
