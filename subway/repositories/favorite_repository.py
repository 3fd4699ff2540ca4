"""Repository for favorite route persistence."""

import uuid

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import UnaryExpression

from subway.models.favorite import Favorite
from subway.schemas.pagination import PageRequest, PageResult, SortOrder

_SORT_COLUMNS = {
    "id": Favorite.id,
    "source_station_id": Favorite.source_station_id,
    "target_station_id": Favorite.target_station_id,
    "created_at": Favorite.created_at,
}

# Properties a caller may sort favorites by
SORTABLE_PROPERTIES = frozenset(_SORT_COLUMNS)


def _order_by(sort: list[SortOrder]) -> list[UnaryExpression[object]]:
    """Translate sort orders into ORDER BY clauses, falling back to id ascending."""
    clauses = []
    for order in sort:
        column = _SORT_COLUMNS.get(order.property)
        if column is None:
            msg = f"Cannot sort favorites by '{order.property}'"
            raise ValueError(msg)
        clauses.append(column.desc() if order.direction == "desc" else column.asc())
    if not any(order.property == "id" for order in sort):
        # id tiebreak keeps paging stable when the sort keys repeat
        clauses.append(Favorite.id.asc())
    return clauses


class FavoriteRepository:
    """Repository for favorite CRUD operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def save(self, favorite: Favorite) -> Favorite:
        """Stage a favorite for insert and flush so its id is assigned."""
        self.db.add(favorite)
        await self.db.flush()
        return favorite

    async def find_by_id(self, favorite_id: int) -> Favorite | None:
        """Get a favorite by ID, regardless of owner."""
        result = await self.db.execute(select(Favorite).where(Favorite.id == favorite_id))
        return result.scalar_one_or_none()

    async def find_by_member_id(self, member_id: uuid.UUID, page_request: PageRequest) -> PageResult[Favorite]:
        """
        Get one page of a member's favorites plus the member's total count.

        Args:
            member_id: Owning member
            page_request: Page number, size and sort orders

        Returns:
            PageResult with the favorites on the page and the total across all pages

        Raises:
            ValueError: If a sort property is not a favorite column
        """
        query: Select[tuple[Favorite]] = select(Favorite).where(Favorite.member_id == member_id)

        count_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        page_query = query.order_by(*_order_by(page_request.sort)).offset(page_request.offset).limit(page_request.size)
        result = await self.db.execute(page_query)
        return PageResult(content=list(result.scalars().all()), total_elements=total)

    async def delete_by_id(self, favorite_id: int) -> bool:
        """
        Delete a favorite by ID.

        Returns:
            True if a row was deleted, False if no such favorite existed
        """
        result = await self.db.execute(delete(Favorite).where(Favorite.id == favorite_id))
        return bool(result.rowcount)
