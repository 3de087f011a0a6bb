"""Role schemas package."""
from .role import PermissionRead, RoleCreate, RoleRead, RoleUpdate

__all__ = [
    "PermissionRead",
    "RoleCreate",
    "RoleRead",
    "RoleUpdate",
]
