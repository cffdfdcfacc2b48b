"""
Base response schemas for standardized API responses.
"""

from math import ceil
from typing import Generic, List, TypeVar

from pydantic import Field

from ._strict_base import StrictModel

T = TypeVar("T")


class PaginatedResponse(StrictModel, Generic[T]):
    """Standard paginated response for list endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Total number of items")
    page: int = Field(default=1, description="Current page number", ge=1)
    limit: int = Field(default=10, description="Items per page", ge=1)
    pages: int = Field(default=0, description="Total number of pages")

    @classmethod
    def build(cls, items: List[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        return cls(items=items, total=total, page=page, limit=limit, pages=ceil(total / limit))
