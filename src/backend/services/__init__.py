"""
Service layer for business logic.

Services are classes of static async methods taking an AsyncSession.
Writes are committed by the outermost transactional service method.
"""

from services.access_resolver import AccessResolver
from services.audit_service import AuditService
from services.device_directory import DeviceDirectoryClient
from services.imei_restriction_service import ImeiRestrictionService
from services.imei_service import ImeiService
from services.reseller_service import ResellerService
from services.role_service import RoleService
from services.tag_service import TagService
from services.technician_service import TechnicianService
from services.user_service import UserService
from services.verification_log_service import VerificationLogService
from services.verification_recorder import VerificationRecorder

__all__ = [
    "AccessResolver",
    "AuditService",
    "DeviceDirectoryClient",
    "ImeiRestrictionService",
    "ImeiService",
    "ResellerService",
    "RoleService",
    "TagService",
    "TechnicianService",
    "UserService",
    "VerificationLogService",
    "VerificationRecorder",
]
