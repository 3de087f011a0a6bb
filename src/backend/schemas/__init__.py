"""
Schemas package for service input and output DTOs.

Schemas complement the SQLModel tables: request models validate input,
read models serialize rows with camelCase aliases.
"""
from .audit import AuditFilter, AuditRead
from .common import PagedResult, PageParams
from .imei import (AccessResult, Caller, DeviceData, DeviceDataResult, DeviceRef,
                   GpsData, VehicleInfo, VerificationHistoryFilter,
                   VerificationHistoryItem, VerificationPayload,
                   VerificationRequest, VerificationResult)
from .imei_restriction import (ImeiRestrictionCreate, ImeiRestrictionFilter,
                               ImeiRestrictionRead, ImeiRestrictionUpdate)
from .reseller import (ResellerCreate, ResellerFilter, ResellerRead,
                       ResellerStatistics, ResellerStatusResult, ResellerUpdate)
from .role import PermissionRead, RoleCreate, RoleRead, RoleUpdate
from .tag import (TagCreate, TagFilter, TagItemCreate, TagItemRead, TagRead,
                  TagUpdate)
from .technician import (TechnicianCreate, TechnicianFilter, TechnicianRead,
                         TechnicianUpdate)
from .user import (PasswordChange, PasswordReset, UserCreate, UserFilter,
                   UserRead, UserUpdate)
from .verification_log import (VerificationLogFilter, VerificationLogRead,
                               VerificationStatistics)

__all__ = [
    # Common
    "PagedResult",
    "PageParams",
    # Audit
    "AuditFilter",
    "AuditRead",
    # IMEI workflow
    "AccessResult",
    "Caller",
    "DeviceData",
    "DeviceDataResult",
    "DeviceRef",
    "GpsData",
    "VehicleInfo",
    "VerificationHistoryFilter",
    "VerificationHistoryItem",
    "VerificationPayload",
    "VerificationRequest",
    "VerificationResult",
    # IMEI restrictions
    "ImeiRestrictionCreate",
    "ImeiRestrictionFilter",
    "ImeiRestrictionRead",
    "ImeiRestrictionUpdate",
    # Resellers
    "ResellerCreate",
    "ResellerFilter",
    "ResellerRead",
    "ResellerStatistics",
    "ResellerStatusResult",
    "ResellerUpdate",
    # Roles and permissions
    "PermissionRead",
    "RoleCreate",
    "RoleRead",
    "RoleUpdate",
    # Tags
    "TagCreate",
    "TagFilter",
    "TagItemCreate",
    "TagItemRead",
    "TagRead",
    "TagUpdate",
    # Technicians
    "TechnicianCreate",
    "TechnicianFilter",
    "TechnicianRead",
    "TechnicianUpdate",
    # Users
    "PasswordChange",
    "PasswordReset",
    "UserCreate",
    "UserFilter",
    "UserRead",
    "UserUpdate",
    # Verification logs
    "VerificationLogFilter",
    "VerificationLogRead",
    "VerificationStatistics",
]
