"""Reseller schemas package."""
from .reseller import (
    ResellerBase,
    ResellerCreate,
    ResellerFilter,
    ResellerRead,
    ResellerStatistics,
    ResellerStatusResult,
    ResellerUpdate,
)

__all__ = [
    "ResellerBase",
    "ResellerCreate",
    "ResellerFilter",
    "ResellerRead",
    "ResellerStatistics",
    "ResellerStatusResult",
    "ResellerUpdate",
]
