"""Pydantic schemas for favorite routes."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from subway.models.favorite import Favorite
from subway.schemas.stations import StationResponse


class FavoriteRequest(BaseModel):
    """
    Request to save a favorite route.

    Unknown fields are ignored, so a client-supplied member id can never
    reach the service; ownership always comes from the authenticated caller.
    """

    model_config = ConfigDict(extra="ignore")

    source_station_id: int = Field(..., ge=1, description="Departure station id")
    target_station_id: int = Field(..., ge=1, description="Arrival station id")


class FavoriteCreatedResponse(BaseModel):
    """Identifier of a newly saved favorite."""

    id: int


class FavoriteResponse(BaseModel):
    """
    Favorite joined with its stations.

    ``source`` or ``target`` is None when the referenced station no longer exists.
    """

    id: int
    source: StationResponse | None
    target: StationResponse | None

    @classmethod
    def of(cls, favorite: Favorite, source: StationResponse | None, target: StationResponse | None) -> Self:
        return cls(id=favorite.id, source=source, target=target)
