"""Technician schemas package."""
from .technician import (
    TechnicianBase,
    TechnicianCreate,
    TechnicianFilter,
    TechnicianRead,
    TechnicianUpdate,
)

__all__ = [
    "TechnicianBase",
    "TechnicianCreate",
    "TechnicianFilter",
    "TechnicianRead",
    "TechnicianUpdate",
]
