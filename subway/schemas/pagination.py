"""Pydantic schemas for paged queries."""

import math
from dataclasses import dataclass
from typing import Generic, Literal, Self, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

SortDirection = Literal["asc", "desc"]

# Largest page any caller may request
MAX_PAGE_SIZE = 100


class SortOrder(BaseModel):
    """Single sort criterion: a property name and a direction."""

    property: str = Field(..., min_length=1, description="Property to sort by")
    direction: SortDirection = Field("asc", description="Sort direction")

    @classmethod
    def parse(cls, raw: str) -> Self:
        """
        Parse a ``property[,direction]`` query parameter value.

        Args:
            raw: Value such as ``"id,desc"`` or ``"created_at"``

        Returns:
            Parsed sort order (direction defaults to ascending)

        Raises:
            ValueError: If the property is empty or the direction is unknown
        """
        prop, _, direction = (part.strip() for part in raw.partition(","))
        if not prop:
            msg = f"Invalid sort parameter '{raw}': property is required"
            raise ValueError(msg)
        direction = direction.lower() or "asc"
        if direction not in ("asc", "desc"):
            msg = f"Invalid sort direction '{direction}' in '{raw}'. Must be 'asc' or 'desc'"
            raise ValueError(msg)
        return cls(property=prop, direction=direction)

    def __str__(self) -> str:
        return f"{self.property},{self.direction}"


class PageRequest(BaseModel):
    """Zero-based page number, page size and sort orders for a paged query."""

    page: int = Field(0, ge=0, description="Zero-based page number")
    size: int = Field(20, ge=1, le=MAX_PAGE_SIZE, description="Number of elements per page")
    sort: list[SortOrder] = Field(default_factory=list, description="Sort orders, applied in sequence")

    @property
    def offset(self) -> int:
        """Number of elements skipped before this page."""
        return self.page * self.size

    @classmethod
    def of(cls, page: int, size: int, *sort: SortOrder) -> Self:
        """Build a page request from positional sort orders."""
        return cls(page=page, size=size, sort=list(sort))


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """One page of rows plus the total row count across all pages."""

    content: list[T]
    total_elements: int


class PageResponse(BaseModel, Generic[T]):
    """Page of results with the metadata clients need to paginate."""

    content: list[T] = Field(..., description="Elements on this page")
    page: int = Field(..., description="Zero-based page number")
    size: int = Field(..., description="Requested page size")
    sort: list[str] = Field(..., description="Sort orders applied, as property,direction")
    total_elements: int = Field(..., description="Total number of elements across all pages")
    total_pages: int = Field(..., description="Total number of pages")
    first: bool = Field(..., description="Whether this is the first page")
    last: bool = Field(..., description="Whether this is the last page")

    @classmethod
    def of(cls, content: list[T], page_request: PageRequest, total_elements: int) -> "PageResponse[T]":
        """
        Build a page response, echoing the page request.

        Args:
            content: Elements on this page
            page_request: The request that produced this page
            total_elements: Total elements across all pages

        Returns:
            PageResponse with derived page counts
        """
        total_pages = math.ceil(total_elements / page_request.size)
        return cls(
            content=content,
            page=page_request.page,
            size=page_request.size,
            sort=[str(order) for order in page_request.sort],
            total_elements=total_elements,
            total_pages=total_pages,
            first=page_request.page == 0,
            last=page_request.page + 1 >= total_pages,
        )
