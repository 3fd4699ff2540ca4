"""Data access for favorites and stations."""

from subway.repositories.favorite_repository import FavoriteRepository
from subway.repositories.station_repository import StationRepository

__all__ = ["FavoriteRepository", "StationRepository"]
