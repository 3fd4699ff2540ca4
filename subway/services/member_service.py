"""Member management service."""

from uuid import UUID

import structlog
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subway.models.member import Member

logger = structlog.get_logger(__name__)


class MemberService:
    """Service for resolving authenticated callers to members."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize member service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_member_by_external_id(self, external_id: str, auth_provider: str = "auth0") -> Member | None:
        """
        Get member by external ID and auth provider.

        Args:
            external_id: External identifier from the auth provider (e.g., 'auth0|123abc')
            auth_provider: Authentication provider name (default: 'auth0')

        Returns:
            Member instance if found, None otherwise
        """
        result = await self.db.execute(
            select(Member).where(and_(Member.external_id == external_id, Member.auth_provider == auth_provider))
        )
        return result.scalar_one_or_none()

    async def get_member_by_id(self, member_id: UUID) -> Member | None:
        """Get member by internal UUID."""
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        return result.scalar_one_or_none()

    async def create_member(self, external_id: str, auth_provider: str = "auth0") -> Member:
        """
        Create a new member.

        Args:
            external_id: External identifier from the auth provider
            auth_provider: Authentication provider name (default: 'auth0')

        Returns:
            Newly created Member, or the existing one if a concurrent request created it first

        Raises:
            MemberConflictError: If the insert conflicted but no existing member can be found
        """
        member = Member(external_id=external_id, auth_provider=auth_provider)
        self.db.add(member)

        try:
            await self.db.commit()
            await self.db.refresh(member)
        except IntegrityError:
            # Race condition: member was created between check and insert
            await self.db.rollback()

            existing_member = await self.get_member_by_external_id(external_id, auth_provider)
            if existing_member:
                return existing_member

            raise MemberConflictError(external_id, auth_provider) from None
        else:
            logger.info("member_created", member_id=str(member.id), auth_provider=auth_provider)
            return member

    async def get_or_create_member(self, external_id: str, auth_provider: str = "auth0") -> Member:
        """
        Get existing member or create one on first sight.

        This is the primary method used during authentication.

        Args:
            external_id: External identifier from the auth provider
            auth_provider: Authentication provider name (default: 'auth0')

        Returns:
            Member instance (existing or newly created)
        """
        member = await self.get_member_by_external_id(external_id, auth_provider)
        if member is None:
            member = await self.create_member(external_id, auth_provider)
        return member


class MemberConflictError(Exception):
    """Raised when a member insert conflicts but the conflicting row cannot be read back."""

    def __init__(self, external_id: str, auth_provider: str) -> None:
        self.external_id = external_id
        self.auth_provider = auth_provider
        super().__init__(
            f"Member with external_id={external_id} and auth_provider={auth_provider} "
            "already exists, but could not be retrieved."
        )
