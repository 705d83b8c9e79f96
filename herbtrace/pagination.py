"""Pagination models shared by list operations."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageRequest(BaseModel):
    """A 1-based page request."""

    page: int = Field(default=1, ge=1, description="Page number, starting at 1")
    limit: int = Field(default=20, ge=1, description="Items per page")

    @property
    def offset(self) -> int:
        """Index of the first item on this page."""
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    """One page of an ordered result set."""

    items: list[T] = Field(default_factory=list, description="Items on this page")
    total: int = Field(..., ge=0, description="Items across all pages")
    page: int = Field(..., ge=1, description="This page number")
    limit: int = Field(..., ge=1, description="Page size")

    @property
    def pages(self) -> int:
        """Number of pages for ``total`` items."""
        return math.ceil(self.total / self.limit) if self.total else 0
