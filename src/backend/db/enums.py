"""
Model enums for database models.

These enums replace lookup tables that:
- Have a fixed, small set of values
- Are never modified at runtime
- Don't require admin management

Integer values match the values stored in the status/type columns.
"""
from enum import Enum, IntEnum
from typing import Iterable


class AccessType(IntEnum):
    """Effect of an IMEI restriction rule."""
    ALLOW = 1
    DENY = 2


class RestrictionStatus(IntEnum):
    """Lifecycle of an IMEI restriction. Only ACTIVE rules are evaluated."""
    INACTIVE = 0
    ACTIVE = 1
    EXPIRED = 2


class TechnicianStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    SUSPENDED = 2


class ResellerStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    SUSPENDED = 2


class UserStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    SUSPENDED = 2
    LOCKED = 3
    DELETED = 4


class TagStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1


class TagScope(IntEnum):
    """Visibility of a tag."""
    GLOBAL = 0
    RESELLER = 1
    USER = 2


class TagEntityType(IntEnum):
    """Kind of entity a tag item points at."""
    DEVICE = 1
    TECHNICIAN = 2
    RESELLER = 3
    USER = 4


class AuditAction(str, Enum):
    """Actions written to the audit trail."""
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAILED = "LOGIN_FAILED"
    IMEI_ACCESS = "IMEI_ACCESS"
    IMEI_ACCESS_DENIED = "IMEI_ACCESS_DENIED"
    IMEI_VERIFICATION = "IMEI_VERIFICATION"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class PermissionName(str, Enum):
    """Permission names seeded into the permissions table."""
    TECHNICIAN_VIEW = "technician.view"
    TECHNICIAN_CREATE = "technician.create"
    TECHNICIAN_EDIT = "technician.edit"
    TECHNICIAN_DELETE = "technician.delete"
    RESELLER_VIEW = "reseller.view"
    RESELLER_CREATE = "reseller.create"
    RESELLER_EDIT = "reseller.edit"
    RESELLER_DELETE = "reseller.delete"
    IMEI_VERIFY = "imei.verify"
    IMEI_VIEW = "imei.view"
    IMEI_RESTRICTION_MANAGE = "imei.restriction.manage"
    REPORT_VIEW = "report.view"
    REPORT_EXPORT = "report.export"
    AUDIT_VIEW = "audit.view"


class CallerRole(str, Enum):
    """
    Closed set of caller roles the IMEI workflow distinguishes.

    Stored role names are matched once, here, and nowhere else.
    """
    SUPER_ADMIN = "SUPERADMIN"
    RESELLER_ADMIN = "RESELLER ADMIN"
    SUPERVISOR = "SUPERVISOR"
    TECHNICIAN = "TECHNICIAN"

    @property
    def is_admin(self) -> bool:
        return self is not CallerRole.TECHNICIAN

    @classmethod
    def from_role_names(cls, role_names: Iterable[str]) -> "CallerRole":
        """
        Resolve stored role names to the most privileged caller role.

        Names are compared case-insensitively with inner whitespace collapsed,
        so "Reseller  admin" and "RESELLER ADMIN" are the same role. Unknown
        names are ignored; a user with no recognised role is a TECHNICIAN.
        """
        normalized = {" ".join(name.split()).upper() for name in role_names if name}
        for role in (cls.SUPER_ADMIN, cls.RESELLER_ADMIN, cls.SUPERVISOR):
            if role.value in normalized:
                return role
        return cls.TECHNICIAN
