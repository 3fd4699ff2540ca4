"""Favorite route model."""

import uuid

from sqlalchemy import BigInteger, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from subway.models.base import Base, BigIntegerId, TimestampMixin


class Favorite(Base, TimestampMixin):
    """
    A saved (source station, target station) pair owned by a member.

    Station and member references are plain ids without foreign keys: a
    station may disappear while favorites pointing at it remain. Rows are
    created and deleted, never updated in place.
    """

    __tablename__ = "favorites"

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    source_station_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    target_station_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Supports the newest-first listing per member
    __table_args__ = (Index("ix_favorites_member_id_id", "member_id", "id"),)

    def is_created_by(self, member_id: uuid.UUID) -> bool:
        """Check whether the given member owns this favorite."""
        return self.member_id == member_id

    def __repr__(self) -> str:
        """String representation of the favorite."""
        return (
            f"<Favorite(id={self.id}, member_id={self.member_id}, "
            f"source_station_id={self.source_station_id}, target_station_id={self.target_station_id})>"
        )
