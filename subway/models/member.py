"""Member model."""

import uuid

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from subway.models.base import Base, TimestampMixin


class Member(Base, TimestampMixin):
    """Authenticated principal that owns favorites."""

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    external_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    auth_provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="auth0",
        server_default="auth0",
    )

    # Composite unique constraint on external_id + auth_provider
    __table_args__ = (Index("ix_members_external_id_auth_provider", "external_id", "auth_provider", unique=True),)

    def __repr__(self) -> str:
        """String representation of the member."""
        return f"<Member(id={self.id}, external_id={self.external_id}, auth_provider={self.auth_provider})>"
