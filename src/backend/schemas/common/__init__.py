"""Common schemas package."""
from .common import PagedResult, PageParams

__all__ = [
    "PagedResult",
    "PageParams",
]
