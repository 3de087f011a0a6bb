"""
Database setup module for seeding system roles and permissions.

Seeding is idempotent: rows are matched by name and only missing ones
are inserted.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import CallerRole, PermissionName
from db.models import Permission, Role, RolePermission

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS: Dict[CallerRole, str] = {
    CallerRole.SUPER_ADMIN: "Platform administrator with access to every reseller",
    CallerRole.RESELLER_ADMIN: "Administrator of a single reseller",
    CallerRole.SUPERVISOR: "Supervises the technicians of a reseller",
    CallerRole.TECHNICIAN: "Field technician verifying device installations",
}

PERMISSION_DESCRIPTIONS: Dict[PermissionName, str] = {
    PermissionName.TECHNICIAN_VIEW: "View technicians",
    PermissionName.TECHNICIAN_CREATE: "Create technicians",
    PermissionName.TECHNICIAN_EDIT: "Edit technicians",
    PermissionName.TECHNICIAN_DELETE: "Deactivate technicians",
    PermissionName.RESELLER_VIEW: "View resellers",
    PermissionName.RESELLER_CREATE: "Create resellers",
    PermissionName.RESELLER_EDIT: "Edit resellers",
    PermissionName.RESELLER_DELETE: "Delete resellers",
    PermissionName.IMEI_VERIFY: "Verify device installations",
    PermissionName.IMEI_VIEW: "View device data by IMEI",
    PermissionName.IMEI_RESTRICTION_MANAGE: "Manage IMEI restriction rules",
    PermissionName.REPORT_VIEW: "View verification reports",
    PermissionName.REPORT_EXPORT: "Export verification reports",
    PermissionName.AUDIT_VIEW: "View the audit trail",
}

_RESELLER_STAFF_PERMISSIONS: List[PermissionName] = [
    PermissionName.TECHNICIAN_VIEW,
    PermissionName.TECHNICIAN_CREATE,
    PermissionName.TECHNICIAN_EDIT,
    PermissionName.TECHNICIAN_DELETE,
    PermissionName.IMEI_VERIFY,
    PermissionName.IMEI_VIEW,
    PermissionName.IMEI_RESTRICTION_MANAGE,
    PermissionName.REPORT_VIEW,
    PermissionName.REPORT_EXPORT,
    PermissionName.AUDIT_VIEW,
]

ROLE_PERMISSIONS: Dict[CallerRole, List[PermissionName]] = {
    CallerRole.SUPER_ADMIN: list(PermissionName),
    CallerRole.RESELLER_ADMIN: _RESELLER_STAFF_PERMISSIONS,
    CallerRole.SUPERVISOR: _RESELLER_STAFF_PERMISSIONS,
    CallerRole.TECHNICIAN: [PermissionName.IMEI_VIEW, PermissionName.IMEI_VERIFY],
}


def permission_module(permission: PermissionName) -> str:
    """Module of a permission: the part before the first dot."""
    return permission.value.split(".", 1)[0]


class DatabaseSetup:
    """Handles default data setup."""

    async def create_roles(self, db: AsyncSession) -> Dict[CallerRole, Role]:
        """Create the four system roles."""
        logger.info("Creating system roles...")
        roles = {}
        for caller_role, description in ROLE_DESCRIPTIONS.items():
            result = await db.execute(select(Role).where(Role.role_name == caller_role.value))
            role = result.scalar_one_or_none()
            if role:
                logger.info(f"Role '{caller_role.value}' already exists, skipping...")
            else:
                role = Role(role_name=caller_role.value, description=description, is_system_role=True)
                db.add(role)
                logger.info(f"Created role: {caller_role.value}")
            roles[caller_role] = role

        await db.flush()
        return roles

    async def create_permissions(self, db: AsyncSession) -> Dict[PermissionName, Permission]:
        """Create one row per PermissionName."""
        logger.info("Creating permissions...")
        permissions = {}
        for name in PermissionName:
            result = await db.execute(select(Permission).where(Permission.permission_name == name.value))
            permission = result.scalar_one_or_none()
            if permission is None:
                permission = Permission(
                    permission_name=name.value,
                    description=PERMISSION_DESCRIPTIONS[name],
                    module=permission_module(name),
                )
                db.add(permission)
                logger.info(f"Created permission: {name.value}")
            permissions[name] = permission

        await db.flush()
        return permissions

    async def create_role_permissions(
        self,
        db: AsyncSession,
        roles: Dict[CallerRole, Role],
        permissions: Dict[PermissionName, Permission],
    ) -> int:
        """Grant each system role its permissions. Returns the number of new grants."""
        result = await db.execute(select(RolePermission.role_id, RolePermission.permission_id))
        existing = {(row[0], row[1]) for row in result.all()}

        created = 0
        for caller_role, names in ROLE_PERMISSIONS.items():
            role_id = roles[caller_role].id
            for name in names:
                key = (role_id, permissions[name].id)
                if key in existing:
                    continue
                db.add(RolePermission(role_id=role_id, permission_id=key[1]))
                existing.add(key)
                created += 1

        await db.flush()
        logger.info(f"Granted {created} role permissions")
        return created

    async def run_setup(self, db: AsyncSession) -> bool:
        """Seed roles, permissions and grants in one transaction."""
        logger.info("Database setup process started...")
        try:
            roles = await self.create_roles(db)
            permissions = await self.create_permissions(db)
            await self.create_role_permissions(db, roles, permissions)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database setup failed: {e}")
            await db.rollback()
            return False

        logger.info("Database setup completed successfully")
        return True


# Global database setup instance
database_setup = DatabaseSetup()


async def setup_database_default_data(db: AsyncSession) -> bool:
    """
    Convenience function to setup database default data.

    Returns:
        True if setup was successful, False otherwise
    """
    return await database_setup.run_setup(db)
