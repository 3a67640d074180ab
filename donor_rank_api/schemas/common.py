"""Common Pydantic schemas shared across the API."""

import math
from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

# Generic type for paginated responses
T = TypeVar("T")


class PaginationParams(BaseModel):
    """Page request after clamping to the endpoint's ceiling."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    per_page: int = Field(default=20, ge=1, description="Items per page")

    @classmethod
    def clamped(cls, page: int, per_page: int, max_per_page: int) -> "PaginationParams":
        """Clamp raw values instead of rejecting them."""
        return cls(page=max(1, page), per_page=clamp_per_page(per_page, max_per_page))

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.per_page


class PaginationMeta(BaseModel):
    """Pagination metadata in responses."""

    current_page: int = Field(description="Current page number")
    last_page: int = Field(description="Last page number (at least 1)")
    per_page: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")


class Page(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    data: list[T] = Field(description="List of items for current page")
    meta: PaginationMeta = Field(description="Pagination metadata")

    model_config = ConfigDict(from_attributes=True)


def clamp_per_page(per_page: int, max_per_page: int) -> int:
    return max(1, min(per_page, max_per_page))


def create_pagination_meta(page: int, per_page: int, total: int) -> PaginationMeta:
    """Helper to create pagination metadata; ``last_page`` never drops below 1."""
    return PaginationMeta(
        current_page=page,
        last_page=max(1, math.ceil(total / per_page)),
        per_page=per_page,
        total=total,
    )


def paginate(items: Sequence[T], page: int, per_page: int, max_per_page: int) -> Page[T]:
    """Slice an already sorted sequence into one page."""
    params = PaginationParams.clamped(page, per_page, max_per_page)
    return Page(
        data=list(items[params.offset:params.offset + params.per_page]),
        meta=create_pagination_meta(params.page, params.per_page, len(items)),
    )
