"""Favorite route service.

Creates, lists and deletes a member's saved (source, target) station pairs.
The caller is always resolved by authentication before reaching this layer;
the service only authorizes, by checking ownership before a delete.
"""

import uuid
from collections.abc import Iterable, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import unit_of_work
from subway.core.telemetry import service_span
from subway.models.favorite import Favorite
from subway.models.station import Station
from subway.repositories.favorite_repository import FavoriteRepository
from subway.repositories.station_repository import StationRepository
from subway.schemas.favorites import FavoriteRequest, FavoriteResponse
from subway.schemas.pagination import PageRequest, PageResponse, SortOrder
from subway.schemas.stations import StationResponse

logger = structlog.get_logger(__name__)

SERVICE_NAME = "favorite-service"

# Size of the unpaged listing of recent favorites
RECENT_FAVORITES_LIMIT = 5


class FavoriteService:
    """Service for managing a member's favorite routes."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the favorite service.

        Args:
            db: Database session
        """
        self.db = db
        self.favorites = FavoriteRepository(db)
        self.stations = StationRepository(db)

    async def create_favorite(self, member_id: uuid.UUID, request: FavoriteRequest) -> int:
        """
        Save a favorite route owned by the caller.

        The owner is always ``member_id``; station ids are stored as given
        without checking that the stations exist.

        Args:
            member_id: Authenticated caller
            request: Source and target station ids

        Returns:
            ID of the new favorite
        """
        with service_span("create_favorite", SERVICE_NAME, **{"member.id": str(member_id)}) as span:
            async with unit_of_work(self.db):
                favorite = Favorite(
                    member_id=member_id,
                    source_station_id=request.source_station_id,
                    target_station_id=request.target_station_id,
                )
                await self.favorites.save(favorite)
                favorite_id = favorite.id

            span.set_attribute("favorite.id", favorite_id)
            logger.info(
                "favorite_created",
                favorite_id=favorite_id,
                member_id=str(member_id),
                source_station_id=request.source_station_id,
                target_station_id=request.target_station_id,
            )
            return favorite_id

    async def find_favorites(self, member_id: uuid.UUID) -> list[FavoriteResponse]:
        """
        List the caller's most recent favorites.

        Returns only the first page, of ``RECENT_FAVORITES_LIMIT`` entries,
        newest (highest id) first.
        """
        page_request = PageRequest.of(0, RECENT_FAVORITES_LIMIT, SortOrder(property="id", direction="desc"))
        with service_span("find_favorites", SERVICE_NAME, **{"member.id": str(member_id)}) as span:
            async with unit_of_work(self.db, read_only=True):
                page = await self.favorites.find_by_member_id(member_id, page_request)
                responses = await self._to_responses(page.content)
            span.set_attribute("favorite.count", len(responses))
            return responses

    async def find_favorites_v2(
        self, member_id: uuid.UUID, page_request: PageRequest
    ) -> PageResponse[FavoriteResponse]:
        """
        List one page of the caller's favorites.

        Args:
            member_id: Authenticated caller
            page_request: Page number, size and sort orders

        Returns:
            PageResponse with the favorites on the page and paging metadata

        Raises:
            ValueError: If a sort property is not a favorite column
        """
        with service_span(
            "find_favorites_v2",
            SERVICE_NAME,
            **{"member.id": str(member_id), "page.number": page_request.page, "page.size": page_request.size},
        ) as span:
            async with unit_of_work(self.db, read_only=True):
                page = await self.favorites.find_by_member_id(member_id, page_request)
                responses = await self._to_responses(page.content)
            span.set_attribute("favorite.total", page.total_elements)
            return PageResponse[FavoriteResponse].of(responses, page_request, page.total_elements)

    async def delete_favorite(self, member_id: uuid.UUID, favorite_id: int) -> None:
        """
        Delete one of the caller's favorites.

        Args:
            member_id: Authenticated caller
            favorite_id: Favorite to delete

        Raises:
            FavoriteNotFoundError: If no favorite has this id
            FavoritePermissionError: If the favorite belongs to another member
        """
        with service_span(
            "delete_favorite", SERVICE_NAME, **{"member.id": str(member_id), "favorite.id": favorite_id}
        ):
            async with unit_of_work(self.db):
                favorite = await self.favorites.find_by_id(favorite_id)
                if favorite is None:
                    raise FavoriteNotFoundError(favorite_id)
                if not favorite.is_created_by(member_id):
                    logger.warning("favorite_delete_denied", favorite_id=favorite_id, member_id=str(member_id))
                    raise FavoritePermissionError(member_id)
                await self.favorites.delete_by_id(favorite_id)

            logger.info("favorite_deleted", favorite_id=favorite_id, member_id=str(member_id))

    async def _to_responses(self, favorites: Sequence[Favorite]) -> list[FavoriteResponse]:
        """Join favorites with their stations using a single batch lookup."""
        stations = await self._extract_stations(favorites)
        responses = []
        for favorite in favorites:
            source = stations.get(favorite.source_station_id)
            target = stations.get(favorite.target_station_id)
            if source is None or target is None:
                logger.warning(
                    "favorite_station_missing",
                    favorite_id=favorite.id,
                    source_station_id=favorite.source_station_id if source is None else None,
                    target_station_id=favorite.target_station_id if target is None else None,
                )
            responses.append(FavoriteResponse.of(favorite, source, target))
        return responses

    async def _extract_stations(self, favorites: Sequence[Favorite]) -> dict[int, StationResponse]:
        station_ids = _extract_station_ids(favorites)
        found: Sequence[Station] = await self.stations.find_all_by_id(station_ids)
        return {station.id: StationResponse.model_validate(station) for station in found}


def _extract_station_ids(favorites: Iterable[Favorite]) -> set[int]:
    """Collect the distinct source and target station ids of the given favorites."""
    station_ids: set[int] = set()
    for favorite in favorites:
        station_ids.add(favorite.source_station_id)
        station_ids.add(favorite.target_station_id)
    return station_ids


# ==================== Custom Exceptions ====================


class FavoriteError(Exception):
    """Base exception for favorite operations."""

    pass


class FavoriteNotFoundError(FavoriteError):
    """Raised when a favorite id does not exist."""

    def __init__(self, favorite_id: int) -> None:
        self.favorite_id = favorite_id
        super().__init__(f"Favorite {favorite_id} not found.")


class FavoritePermissionError(FavoriteError):
    """
    Raised when a member tries to delete a favorite they do not own.

    The message names only the denied caller, never the favorite's owner.
    """

    def __init__(self, member_id: uuid.UUID) -> None:
        self.member_id = member_id
        super().__init__(f"Member {member_id} is not allowed to delete this favorite.")
