"""Stations API endpoints."""

from collections.abc import Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_db
from subway.models.station import Station
from subway.schemas.stations import StationRequest, StationResponse
from subway.services.station_service import (
    DuplicateStationError,
    StationNotFoundError,
    StationService,
)

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    request: StationRequest,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Create a station.

    Raises:
        HTTPException: 409 if a station with the same name already exists
    """
    service = StationService(db)
    try:
        return await service.create_station(request)
    except DuplicateStationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("", response_model=list[StationResponse])
async def list_stations(db: AsyncSession = Depends(get_db)) -> Sequence[Station]:
    """List all stations ordered by id."""
    service = StationService(db)
    return await service.list_stations()


@router.get("/{station_id}", response_model=StationResponse)
async def get_station(station_id: int, db: AsyncSession = Depends(get_db)) -> Station:
    service = StationService(db)
    try:
        return await service.get_station(station_id)
    except StationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(station_id: int, db: AsyncSession = Depends(get_db)) -> None:
    """
    Delete a station.

    Favorites that reference the station are kept and render it as null.

    Raises:
        HTTPException: 404 if the station does not exist
    """
    service = StationService(db)
    try:
        await service.delete_station(station_id)
    except StationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
