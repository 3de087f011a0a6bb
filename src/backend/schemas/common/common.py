"""Shared paging schemas."""

import math
from typing import Generic, List, TypeVar

from pydantic import Field, computed_field, field_validator

from core.config import settings
from core.schema_base import CamelSchemaModel

T = TypeVar("T")


class PageParams(CamelSchemaModel):
    """Page request. Page size is clamped to the configured maximum."""

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(
        default_factory=lambda: settings.pagination.default_page_size,
        ge=1,
        description="Items per page",
    )

    @field_validator("page_size")
    @classmethod
    def clamp_page_size(cls, v: int) -> int:
        return min(v, settings.pagination.max_page_size)


class PagedResult(CamelSchemaModel, Generic[T]):
    """One page of results with the total count across all pages."""

    items: List[T] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @computed_field
    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @computed_field
    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages
