"""Favorites API endpoints for managing a member's saved routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.auth import get_current_member
from subway.core.config import settings
from subway.core.database import get_db
from subway.models.member import Member
from subway.repositories.favorite_repository import SORTABLE_PROPERTIES
from subway.schemas.favorites import FavoriteCreatedResponse, FavoriteRequest, FavoriteResponse
from subway.schemas.pagination import MAX_PAGE_SIZE, PageRequest, PageResponse, SortOrder
from subway.services.favorite_service import (
    FavoriteNotFoundError,
    FavoritePermissionError,
    FavoriteService,
)

router = APIRouter(prefix="/favorites", tags=["favorites"])


def get_favorite_page_request(
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    sort: list[str] = Query(["id,desc"], description="Sort orders as property,direction"),
) -> PageRequest:
    """
    Build a PageRequest from query parameters.

    Raises:
        HTTPException: 422 if a sort parameter is malformed or names an unsortable property
    """
    try:
        orders = [SortOrder.parse(raw) for raw in sort]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e)) from e

    invalid = sorted({order.property for order in orders} - SORTABLE_PROPERTIES)
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=(
                f"Cannot sort favorites by {', '.join(invalid)}. "
                f"Sortable properties: {', '.join(sorted(SORTABLE_PROPERTIES))}"
            ),
        )
    return PageRequest.of(page, size, *orders)


@router.post("", response_model=FavoriteCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_favorite(
    request: FavoriteRequest,
    response: Response,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
) -> FavoriteCreatedResponse:
    """
    Save a favorite route for the authenticated member.

    The owner is always the caller; any member id in the body is ignored.
    The new favorite's URL is returned in the Location header.

    Args:
        request: Source and target station ids
        response: Response used to set the Location header
        current_member: Authenticated member
        db: Database session

    Returns:
        ID of the created favorite
    """
    service = FavoriteService(db)
    favorite_id = await service.create_favorite(current_member.id, request)
    response.headers["Location"] = f"{settings.API_V1_PREFIX}/favorites/{favorite_id}"
    return FavoriteCreatedResponse(id=favorite_id)


@router.get("", response_model=list[FavoriteResponse])
async def list_favorites(
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
) -> list[FavoriteResponse]:
    """List the authenticated member's most recent favorites, newest first."""
    service = FavoriteService(db)
    return await service.find_favorites(current_member.id)


@router.get("/paged", response_model=PageResponse[FavoriteResponse])
async def list_favorites_paged(
    page_request: PageRequest = Depends(get_favorite_page_request),
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
) -> PageResponse[FavoriteResponse]:
    """
    List one page of the authenticated member's favorites.

    Args:
        page_request: Page number, size and sort orders from the query string
        current_member: Authenticated member
        db: Database session

    Returns:
        Page of favorites with total element and page counts
    """
    service = FavoriteService(db)
    return await service.find_favorites_v2(current_member.id, page_request)


@router.delete("/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_favorite(
    favorite_id: int,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete one of the authenticated member's favorites.

    Raises:
        HTTPException: 404 if the favorite does not exist, 403 if it belongs to another member
    """
    service = FavoriteService(db)
    try:
        await service.delete_favorite(current_member.id, favorite_id)
    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FavoritePermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
