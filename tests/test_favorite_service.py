"""Tests for FavoriteService."""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from subway.models.favorite import Favorite
from subway.models.member import Member
from subway.models.station import Station
from subway.schemas.favorites import FavoriteRequest
from subway.schemas.pagination import PageRequest, SortOrder
from subway.services.favorite_service import (
    RECENT_FAVORITES_LIMIT,
    FavoriteNotFoundError,
    FavoritePermissionError,
    FavoriteService,
    _extract_station_ids,
)


async def _add_stations(db_session: AsyncSession, *station_ids: int) -> None:
    db_session.add_all(Station(id=station_id, name=f"Station {station_id}") for station_id in station_ids)
    await db_session.commit()


async def _count_favorites(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(func.count()).select_from(Favorite))
    return result.scalar_one()


def _request(source: int, target: int) -> FavoriteRequest:
    return FavoriteRequest(source_station_id=source, target_station_id=target)


class TestCreateFavorite:
    """Tests for FavoriteService.create_favorite."""

    async def test_stores_favorite_owned_by_caller(self, db_session: AsyncSession, test_member: Member) -> None:
        member_id = test_member.id
        service = FavoriteService(db_session)

        favorite_id = await service.create_favorite(member_id, _request(10, 20))

        favorite = await db_session.get(Favorite, favorite_id)
        assert favorite is not None
        assert favorite.member_id == member_id
        assert favorite.source_station_id == 10
        assert favorite.target_station_id == 20

    async def test_ignores_member_id_in_payload(
        self, db_session: AsyncSession, test_member: Member, another_member: Member
    ) -> None:
        member_id = test_member.id
        request = FavoriteRequest.model_validate(
            {"member_id": str(another_member.id), "source_station_id": 1, "target_station_id": 2}
        )

        favorite_id = await FavoriteService(db_session).create_favorite(member_id, request)

        favorite = await db_session.get(Favorite, favorite_id)
        assert favorite is not None
        assert favorite.member_id == member_id

    async def test_does_not_require_stations_to_exist(self, db_session: AsyncSession, test_member: Member) -> None:
        favorite_id = await FavoriteService(db_session).create_favorite(test_member.id, _request(404, 405))

        assert favorite_id is not None
        assert await _count_favorites(db_session) == 1

    async def test_ids_increase(self, db_session: AsyncSession, test_member: Member) -> None:
        service = FavoriteService(db_session)

        first = await service.create_favorite(test_member.id, _request(1, 2))
        second = await service.create_favorite(test_member.id, _request(1, 2))

        assert second > first

    async def test_logs_creation(self, db_session: AsyncSession, test_member: Member) -> None:
        with patch("subway.services.favorite_service.logger") as mock_logger:
            favorite_id = await FavoriteService(db_session).create_favorite(test_member.id, _request(3, 4))

        mock_logger.info.assert_called_once()
        call_args = mock_logger.info.call_args
        assert call_args[0][0] == "favorite_created"
        assert call_args[1]["favorite_id"] == favorite_id
        assert call_args[1]["member_id"] == str(test_member.id)

    async def test_failed_save_leaves_nothing_behind(self, db_session: AsyncSession, test_member: Member) -> None:
        member_id = test_member.id
        service = FavoriteService(db_session)

        with (
            patch.object(service.favorites, "save", side_effect=RuntimeError("disk full")),
            pytest.raises(RuntimeError, match="disk full"),
        ):
            await service.create_favorite(member_id, _request(1, 2))

        assert await _count_favorites(db_session) == 0


class TestFindFavorites:
    """Tests for the fixed first-page listing."""

    async def test_returns_favorite_with_stations(self, db_session: AsyncSession, test_member: Member) -> None:
        await _add_stations(db_session, 10, 20)
        service = FavoriteService(db_session)
        favorite_id = await service.create_favorite(test_member.id, _request(10, 20))

        favorites = await service.find_favorites(test_member.id)

        assert len(favorites) == 1
        assert favorites[0].id == favorite_id
        assert favorites[0].source is not None
        assert favorites[0].source.id == 10
        assert favorites[0].source.name == "Station 10"
        assert favorites[0].target is not None
        assert favorites[0].target.id == 20

    async def test_returns_at_most_five_newest_first(self, db_session: AsyncSession, test_member: Member) -> None:
        await _add_stations(db_session, 1, 2)
        service = FavoriteService(db_session)
        created = [await service.create_favorite(test_member.id, _request(1, 2)) for _ in range(7)]

        favorites = await service.find_favorites(test_member.id)

        assert [favorite.id for favorite in favorites] == sorted(created, reverse=True)[:5]
        assert RECENT_FAVORITES_LIMIT == 5

    async def test_only_returns_callers_favorites(
        self, db_session: AsyncSession, test_member: Member, another_member: Member
    ) -> None:
        service = FavoriteService(db_session)
        mine = await service.create_favorite(test_member.id, _request(1, 2))
        await service.create_favorite(another_member.id, _request(1, 2))

        favorites = await service.find_favorites(test_member.id)

        assert [favorite.id for favorite in favorites] == [mine]

    async def test_empty_for_member_without_favorites(self, db_session: AsyncSession) -> None:
        assert await FavoriteService(db_session).find_favorites(uuid.uuid4()) == []

    async def test_fetches_stations_in_one_batch(self, db_session: AsyncSession, test_member: Member) -> None:
        await _add_stations(db_session, 1, 2, 3)
        service = FavoriteService(db_session)
        await service.create_favorite(test_member.id, _request(1, 2))
        await service.create_favorite(test_member.id, _request(2, 3))
        await service.create_favorite(test_member.id, _request(3, 1))

        with patch.object(
            service.stations, "find_all_by_id", wraps=service.stations.find_all_by_id
        ) as mock_find_all_by_id:
            favorites = await service.find_favorites(test_member.id)

        mock_find_all_by_id.assert_awaited_once_with({1, 2, 3})
        assert all(favorite.source is not None and favorite.target is not None for favorite in favorites)

    async def test_missing_station_is_null_and_logged(self, db_session: AsyncSession, test_member: Member) -> None:
        await _add_stations(db_session, 10)
        service = FavoriteService(db_session)
        favorite_id = await service.create_favorite(test_member.id, _request(10, 999))

        with patch("subway.services.favorite_service.logger") as mock_logger:
            favorites = await service.find_favorites(test_member.id)

        assert len(favorites) == 1
        assert favorites[0].source is not None
        assert favorites[0].source.id == 10
        assert favorites[0].target is None
        mock_logger.warning.assert_called_once()
        call_args = mock_logger.warning.call_args
        assert call_args[0][0] == "favorite_station_missing"
        assert call_args[1]["favorite_id"] == favorite_id
        assert call_args[1]["target_station_id"] == 999
        assert call_args[1]["source_station_id"] is None


class TestFindFavoritesV2:
    """Tests for caller-paged listing."""

    @pytest.fixture
    async def twelve_favorites(self, db_session: AsyncSession, test_member: Member) -> list[int]:
        await _add_stations(db_session, 1, 2)
        service = FavoriteService(db_session)
        return [await service.create_favorite(test_member.id, _request(1, 2)) for _ in range(12)]

    async def test_middle_page(self, db_session: AsyncSession, test_member: Member, twelve_favorites: list[int]) -> None:
        page_request = PageRequest.of(1, 5, SortOrder(property="id", direction="asc"))

        page = await FavoriteService(db_session).find_favorites_v2(test_member.id, page_request)

        assert [favorite.id for favorite in page.content] == twelve_favorites[5:10]
        assert page.page == 1
        assert page.size == 5
        assert page.sort == ["id,asc"]
        assert page.total_elements == 12
        assert page.total_pages == 3
        assert page.first is False
        assert page.last is False

    async def test_last_page(self, db_session: AsyncSession, test_member: Member, twelve_favorites: list[int]) -> None:
        page_request = PageRequest.of(2, 5, SortOrder(property="id", direction="asc"))

        page = await FavoriteService(db_session).find_favorites_v2(test_member.id, page_request)

        assert [favorite.id for favorite in page.content] == twelve_favorites[10:]
        assert page.last is True

    async def test_page_past_the_end_is_empty(
        self, db_session: AsyncSession, test_member: Member, twelve_favorites: list[int]
    ) -> None:
        page = await FavoriteService(db_session).find_favorites_v2(test_member.id, PageRequest.of(9, 5))

        assert page.content == []
        assert page.total_elements == 12

    async def test_sorts_by_station(self, db_session: AsyncSession, test_member: Member) -> None:
        service = FavoriteService(db_session)
        low = await service.create_favorite(test_member.id, _request(1, 9))
        high = await service.create_favorite(test_member.id, _request(7, 9))
        middle = await service.create_favorite(test_member.id, _request(4, 9))

        page = await service.find_favorites_v2(
            test_member.id, PageRequest.of(0, 10, SortOrder(property="source_station_id", direction="desc"))
        )

        assert [favorite.id for favorite in page.content] == [high, middle, low]

    async def test_total_counts_only_callers_favorites(
        self, db_session: AsyncSession, test_member: Member, another_member: Member
    ) -> None:
        service = FavoriteService(db_session)
        await service.create_favorite(test_member.id, _request(1, 2))
        await service.create_favorite(another_member.id, _request(1, 2))
        await service.create_favorite(another_member.id, _request(1, 2))

        page = await service.find_favorites_v2(test_member.id, PageRequest.of(0, 10))

        assert page.total_elements == 1
        assert page.total_pages == 1

    async def test_rejects_unknown_sort_property(self, db_session: AsyncSession, test_member: Member) -> None:
        page_request = PageRequest.of(0, 5, SortOrder(property="member_id"))

        with pytest.raises(ValueError, match="Cannot sort favorites by 'member_id'"):
            await FavoriteService(db_session).find_favorites_v2(test_member.id, page_request)


class TestDeleteFavorite:
    """Tests for FavoriteService.delete_favorite."""

    async def test_deletes_own_favorite(self, db_session: AsyncSession, test_member: Member) -> None:
        service = FavoriteService(db_session)
        favorite_id = await service.create_favorite(test_member.id, _request(1, 2))

        await service.delete_favorite(test_member.id, favorite_id)

        assert await _count_favorites(db_session) == 0

    async def test_unknown_favorite_raises_not_found(self, db_session: AsyncSession, test_member: Member) -> None:
        with pytest.raises(FavoriteNotFoundError) as exc_info:
            await FavoriteService(db_session).delete_favorite(test_member.id, 12345)

        assert exc_info.value.favorite_id == 12345

    async def test_other_members_favorite_is_denied_and_kept(
        self, db_session: AsyncSession, test_member: Member, another_member: Member
    ) -> None:
        owner_id = test_member.id
        intruder_id = another_member.id
        service = FavoriteService(db_session)
        favorite_id = await service.create_favorite(owner_id, _request(1, 2))

        with pytest.raises(FavoritePermissionError) as exc_info:
            await service.delete_favorite(intruder_id, favorite_id)

        assert exc_info.value.member_id == intruder_id
        assert str(intruder_id) in str(exc_info.value)
        assert str(owner_id) not in str(exc_info.value)
        assert await _count_favorites(db_session) == 1

    async def test_member_scenario(self, db_session: AsyncSession, test_member: Member, another_member: Member) -> None:
        """M1 saves a route, M2 cannot delete it, M1 can."""
        m1 = test_member.id
        m2 = another_member.id
        await _add_stations(db_session, 10, 20)
        service = FavoriteService(db_session)

        f1 = await service.create_favorite(m1, _request(10, 20))

        favorites = await service.find_favorites(m1)
        assert len(favorites) == 1
        assert favorites[0].id == f1
        assert favorites[0].source is not None
        assert favorites[0].source.id == 10
        assert favorites[0].target is not None
        assert favorites[0].target.id == 20

        with pytest.raises(FavoritePermissionError):
            await service.delete_favorite(m2, f1)

        await service.delete_favorite(m1, f1)

        assert await service.find_favorites(m1) == []


def test_extract_station_ids_deduplicates() -> None:
    member_id = uuid.uuid4()
    favorites = [
        Favorite(member_id=member_id, source_station_id=1, target_station_id=2),
        Favorite(member_id=member_id, source_station_id=2, target_station_id=3),
        Favorite(member_id=member_id, source_station_id=1, target_station_id=1),
    ]

    assert _extract_station_ids(favorites) == {1, 2, 3}


def test_extract_station_ids_empty() -> None:
    assert _extract_station_ids([]) == set()
