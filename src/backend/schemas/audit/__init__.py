"""Audit schemas package."""
from .audit import AuditFilter, AuditRead

__all__ = [
    "AuditFilter",
    "AuditRead",
]
