"""Tag schemas for device grouping and restriction scoping."""

from schemas.tag.tag import (
    TagBase,
    TagCreate,
    TagFilter,
    TagItemCreate,
    TagItemRead,
    TagRead,
    TagUpdate,
)

__all__ = [
    "TagBase",
    "TagCreate",
    "TagFilter",
    "TagItemCreate",
    "TagItemRead",
    "TagRead",
    "TagUpdate",
]
