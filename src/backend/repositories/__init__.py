"""
Repository layer for database operations.

This package contains all data access logic isolated from business logic.
Each repository handles queries for a specific entity.
"""

from repositories.audit_log_repository import AuditLogRepository
from repositories.base_repository import BaseRepository
from repositories.imei_restriction_repository import ImeiRestrictionRepository
from repositories.permission_repository import PermissionRepository
from repositories.reseller_repository import ResellerRepository
from repositories.role_repository import RoleRepository
from repositories.tag_repository import TagRepository
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from repositories.verification_log_repository import VerificationLogRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "ImeiRestrictionRepository",
    "PermissionRepository",
    "ResellerRepository",
    "RoleRepository",
    "TagRepository",
    "TechnicianRepository",
    "UserRepository",
    "VerificationLogRepository",
]
