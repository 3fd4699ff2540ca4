"""Database models for the Subway application."""

# Import all models to register them with SQLAlchemy metadata
from subway.models.base import Base, TimestampMixin
from subway.models.favorite import Favorite
from subway.models.member import Member
from subway.models.station import Station

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Member models
    "Member",
    # Station models
    "Station",
    # Favorite models
    "Favorite",
]
