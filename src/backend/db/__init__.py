"""
Database models using SQLModel.

Tables for tenants, users and roles, technicians, tags, IMEI restrictions,
verification logs and the audit trail. Fixed value sets live in enums.
"""
from .models import (
    # Tenants and RBAC
    Reseller,
    User,
    Role,
    Permission,
    RolePermission,
    UserRole,

    # Technicians, tags and restrictions
    Technician,
    Tag,
    TagItem,
    ImeiRestriction,

    # Verification and audit
    VerificationLog,
    AuditLog,

    # Utilities
    TableModel,
    as_naive_utc,
    utc_now,
)

from .enums import (
    AccessType,
    AuditAction,
    CallerRole,
    PermissionName,
    ResellerStatus,
    RestrictionStatus,
    TagEntityType,
    TagScope,
    TagStatus,
    TechnicianStatus,
    UserStatus,
)

__all__ = [
    # Enums
    "AccessType",
    "AuditAction",
    "CallerRole",
    "PermissionName",
    "ResellerStatus",
    "RestrictionStatus",
    "TagEntityType",
    "TagScope",
    "TagStatus",
    "TechnicianStatus",
    "UserStatus",

    # Tenants and RBAC
    "Reseller",
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",

    # Technicians, tags and restrictions
    "Technician",
    "Tag",
    "TagItem",
    "ImeiRestriction",

    # Verification and audit
    "VerificationLog",
    "AuditLog",

    # Utilities
    "TableModel",
    "as_naive_utc",
    "utc_now",
]
