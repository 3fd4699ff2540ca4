"""Station model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from subway.models.base import Base, BigIntegerId, TimestampMixin


class Station(Base, TimestampMixin):
    """Named subway station referenced by favorites."""

    __tablename__ = "stations"

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of the station."""
        return f"<Station(id={self.id}, name={self.name})>"
