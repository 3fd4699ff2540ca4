"""Station catalogue service."""

from collections.abc import Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import unit_of_work
from subway.models.station import Station
from subway.repositories.station_repository import StationRepository
from subway.schemas.stations import StationRequest

logger = structlog.get_logger(__name__)


class StationService:
    """Service for managing stations that favorites refer to."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.stations = StationRepository(db)

    async def create_station(self, request: StationRequest) -> Station:
        """
        Create a station.

        Raises:
            DuplicateStationError: If a station with this name already exists
        """
        if await self.stations.find_by_name(request.name) is not None:
            raise DuplicateStationError(request.name)

        station = Station(name=request.name)
        try:
            async with unit_of_work(self.db):
                await self.stations.save(station)
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same name
            raise DuplicateStationError(request.name) from e

        logger.info("station_created", station_id=station.id, name=station.name)
        return station

    async def list_stations(self) -> Sequence[Station]:
        async with unit_of_work(self.db, read_only=True):
            return await self.stations.find_all()

    async def get_station(self, station_id: int) -> Station:
        """
        Get a station by ID.

        Raises:
            StationNotFoundError: If no station has this id
        """
        async with unit_of_work(self.db, read_only=True):
            station = await self.stations.find_by_id(station_id)
        if station is None:
            raise StationNotFoundError(station_id)
        return station

    async def delete_station(self, station_id: int) -> None:
        """
        Delete a station. Favorites referencing it are kept.

        Raises:
            StationNotFoundError: If no station has this id
        """
        async with unit_of_work(self.db):
            if not await self.stations.delete_by_id(station_id):
                raise StationNotFoundError(station_id)
        logger.info("station_deleted", station_id=station_id)


# ==================== Custom Exceptions ====================


class StationError(Exception):
    """Base exception for station operations."""

    pass


class StationNotFoundError(StationError):
    """Raised when a station id does not exist."""

    def __init__(self, station_id: int) -> None:
        self.station_id = station_id
        super().__init__(f"Station {station_id} not found.")


class DuplicateStationError(StationError):
    """Raised when creating a station whose name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Station '{name}' already exists.")
