"""Repository for station lookups."""

from collections.abc import Collection, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from subway.models.station import Station


class StationRepository:
    """Repository for station CRUD operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_all_by_id(self, station_ids: Collection[int]) -> Sequence[Station]:
        """
        Get every station whose id is in ``station_ids``.

        Ids with no matching station are silently absent from the result.
        Order of the result is unspecified.
        """
        if not station_ids:
            return []
        result = await self.db.execute(select(Station).where(Station.id.in_(set(station_ids))))
        return result.scalars().all()

    async def find_by_id(self, station_id: int) -> Station | None:
        """Get a station by ID."""
        result = await self.db.execute(select(Station).where(Station.id == station_id))
        return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> Station | None:
        """Get a station by its unique name."""
        result = await self.db.execute(select(Station).where(Station.name == name))
        return result.scalar_one_or_none()

    async def find_all(self) -> Sequence[Station]:
        """Get all stations ordered by id."""
        result = await self.db.execute(select(Station).order_by(Station.id))
        return result.scalars().all()

    async def save(self, station: Station) -> Station:
        """Stage a station for insert and flush so its id is assigned."""
        self.db.add(station)
        await self.db.flush()
        return station

    async def delete_by_id(self, station_id: int) -> bool:
        """Delete a station by ID. Favorites referencing it are left in place."""
        result = await self.db.execute(delete(Station).where(Station.id == station_id))
        return bool(result.rowcount)
