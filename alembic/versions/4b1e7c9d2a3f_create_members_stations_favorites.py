"""create_members_stations_favorites

Initial schema: members resolved from the identity provider, the station
catalogue, and favorites pairing two stations for a member. Favorites hold
plain ids without foreign keys so stations can be removed independently.

Revision ID: 4b1e7c9d2a3f
Revises:
Create Date: 2026-10-19 09:12:44.118206

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4b1e7c9d2a3f"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

BIG_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("auth_provider", sa.String(length=50), server_default="auth0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_members_external_id_auth_provider",
        "members",
        ["external_id", "auth_provider"],
        unique=True,
    )

    op.create_table(
        "stations",
        sa.Column("id", BIG_ID, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "favorites",
        sa.Column("id", BIG_ID, autoincrement=True, nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("source_station_id", sa.BigInteger(), nullable=False),
        sa.Column("target_station_id", sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_favorites_member_id"), "favorites", ["member_id"], unique=False)
    op.create_index("ix_favorites_member_id_id", "favorites", ["member_id", "id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_favorites_member_id_id", table_name="favorites")
    op.drop_index(op.f("ix_favorites_member_id"), table_name="favorites")
    op.drop_table("favorites")
    op.drop_table("stations")
    op.drop_index("ix_members_external_id_auth_provider", table_name="members")
    op.drop_table("members")
