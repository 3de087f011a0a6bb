"""IMEI restriction schemas package."""
from .imei_restriction import (
    ImeiRestrictionBase,
    ImeiRestrictionCreate,
    ImeiRestrictionFilter,
    ImeiRestrictionRead,
    ImeiRestrictionUpdate,
)

__all__ = [
    "ImeiRestrictionBase",
    "ImeiRestrictionCreate",
    "ImeiRestrictionFilter",
    "ImeiRestrictionRead",
    "ImeiRestrictionUpdate",
]
