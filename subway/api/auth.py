"""Authentication API endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from subway.core.auth import get_current_member
from subway.models.member import Member

router = APIRouter(prefix="/auth", tags=["auth"])


class MemberResponse(BaseModel):
    """
    Member information response.

    Note: external_id and auth_provider are intentionally excluded.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


@router.get("/me", response_model=MemberResponse)
async def get_current_member_info(
    current_member: Member = Depends(get_current_member),
) -> Member:
    """
    Get current authenticated member information.

    A member record is created automatically on the first authenticated request.
    """
    return current_member
