"""Verification log schemas package."""
from .verification_log import (
    VerificationLogFilter,
    VerificationLogRead,
    VerificationStatistics,
)

__all__ = [
    "VerificationLogFilter",
    "VerificationLogRead",
    "VerificationStatistics",
]
