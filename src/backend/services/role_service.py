"""
Role Service - custom roles and their permissions.

System roles are seeded by db.setup and are read-only here. Custom roles
may belong to a reseller; a reseller sees system roles plus its own.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import (
    critical_database_operation,
    log_database_operation,
    safe_database_query,
    transactional_database_operation,
)
from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction
from db.models import Role, utc_now
from repositories.permission_repository import PermissionRepository
from repositories.role_repository import RoleRepository
from schemas.role import PermissionRead, RoleCreate, RoleRead, RoleUpdate
from services.audit_service import AuditService

logger = logging.getLogger(__name__)


class RoleService:
    """Service for role and permission operations."""

    @staticmethod
    async def _to_read(db: AsyncSession, role: Role) -> RoleRead:
        permissions = await RoleRepository.find_permissions(db, role.id)
        return RoleRead.model_validate(role).model_copy(
            update={"permissions": [PermissionRead.model_validate(p) for p in permissions]}
        )

    @staticmethod
    async def _require_custom_role(db: AsyncSession, role_id: int) -> Role:
        role = await RoleRepository.find_by_id(db, role_id)
        if role is None:
            raise NotFoundError("Role", role_id)
        if role.is_system_role:
            raise ValidationError(f"System role '{role.role_name}' cannot be modified", field="role_id")
        return role

    @staticmethod
    async def _validate_permission_ids(db: AsyncSession, permission_ids: Sequence[int]) -> None:
        existing = set(await PermissionRepository.find_existing_ids(db, permission_ids))
        for permission_id in permission_ids:
            if permission_id not in existing:
                raise NotFoundError("Permission", permission_id)

    @staticmethod
    @critical_database_operation("list_roles")
    async def list_roles(db: AsyncSession, reseller_id: Optional[int] = None) -> List[RoleRead]:
        """Roles by name; with a reseller, system roles plus that reseller's own."""
        roles = await RoleRepository.find_visible(db, reseller_id)
        return [await RoleService._to_read(db, role) for role in roles]

    @staticmethod
    @critical_database_operation("get_role")
    async def get_role(db: AsyncSession, role_id: int) -> Optional[RoleRead]:
        role = await RoleRepository.find_by_id(db, role_id)
        if role is None:
            return None
        return await RoleService._to_read(db, role)

    @staticmethod
    def can_access_role(role: Role, reseller_id: Optional[int]) -> bool:
        """Platform users see every role; reseller users see system roles and their own."""
        if role.is_system_role or reseller_id is None:
            return True
        return role.reseller_id == reseller_id

    @staticmethod
    @transactional_database_operation("create_role")
    @log_database_operation("role creation", level="info")
    async def create_role(
        db: AsyncSession,
        role_data: RoleCreate,
        created_by: Optional[int] = None,
        reseller_id: Optional[int] = None,
    ) -> RoleRead:
        """
        Create a custom role with its permissions.

        Raises:
            ValidationError: Role name already exists
            NotFoundError: A permission id does not exist
        """
        if await RoleRepository.find_by_name(db, role_data.role_name) is not None:
            raise ValidationError(f"Role '{role_data.role_name}' already exists", field="role_name")
        await RoleService._validate_permission_ids(db, role_data.permission_ids)

        now = utc_now()
        role = await RoleRepository.create(
            db,
            obj_in={
                "role_name": role_data.role_name,
                "description": role_data.description,
                "is_system_role": False,
                "reseller_id": reseller_id,
                "created_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )
        if role_data.permission_ids:
            await RoleRepository.replace_permissions(db, role.id, role_data.permission_ids, created_by=created_by)

        await AuditService.log(db, AuditAction.CREATE, "Role", role.id, user_id=created_by, new_values=role_data)
        return await RoleService._to_read(db, role)

    @staticmethod
    @transactional_database_operation("update_role")
    @log_database_operation("role update", level="info")
    async def update_role(
        db: AsyncSession,
        role_id: int,
        update_data: RoleUpdate,
        updated_by: Optional[int] = None,
    ) -> RoleRead:
        """
        Partially update a custom role.

        Raises:
            NotFoundError: Role or permission does not exist
            ValidationError: System role, or name already taken
        """
        role = await RoleService._require_custom_role(db, role_id)

        if update_data.role_name is not None:
            name = update_data.role_name.strip()
            if not name:
                raise ValidationError("Role name must not be blank", field="role_name")
            if name != role.role_name:
                other = await RoleRepository.find_by_name(db, name)
                if other is not None and other.id != role_id:
                    raise ValidationError(f"Role '{name}' already exists", field="role_name")
                role.role_name = name

        if update_data.description is not None:
            role.description = update_data.description

        if update_data.permission_ids is not None:
            await RoleService._validate_permission_ids(db, update_data.permission_ids)
            await RoleRepository.replace_permissions(db, role_id, update_data.permission_ids, created_by=updated_by)

        role.updated_at = utc_now()
        await db.flush()

        await AuditService.log(db, AuditAction.UPDATE, "Role", role_id, user_id=updated_by, new_values=update_data)
        return await RoleService._to_read(db, role)

    @staticmethod
    @transactional_database_operation("delete_role")
    @log_database_operation("role deletion", level="info")
    async def delete_role(db: AsyncSession, role_id: int, deleted_by: Optional[int] = None) -> bool:
        """
        Delete a custom role; its assignments go with it. False when missing.

        Raises:
            ValidationError: System role
        """
        role = await RoleRepository.find_by_id(db, role_id)
        if role is None:
            return False
        if role.is_system_role:
            raise ValidationError(f"System role '{role.role_name}' cannot be deleted", field="role_id")

        old_values = {"roleId": role.id, "roleName": role.role_name, "description": role.description}
        await RoleRepository.delete(db, id_value=role_id)

        await AuditService.log(db, AuditAction.DELETE, "Role", role_id, user_id=deleted_by, old_values=old_values)
        return True

    @staticmethod
    @transactional_database_operation("assign_role_permissions")
    async def assign_permissions(
        db: AsyncSession,
        role_id: int,
        permission_ids: List[int],
        updated_by: Optional[int] = None,
    ) -> bool:
        """Replace the permissions of a custom role. False when the role is missing."""
        role = await RoleRepository.find_by_id(db, role_id)
        if role is None:
            return False
        if role.is_system_role:
            raise ValidationError(f"System role '{role.role_name}' cannot be modified", field="role_id")

        await RoleService._validate_permission_ids(db, permission_ids)
        await RoleRepository.replace_permissions(db, role_id, permission_ids, created_by=updated_by)
        role.updated_at = utc_now()
        await db.flush()

        await AuditService.log(
            db, AuditAction.UPDATE, "Role", role_id, user_id=updated_by, new_values={"permissionIds": permission_ids}
        )
        return True

    @staticmethod
    @critical_database_operation("get_user_permissions")
    async def get_user_permissions(db: AsyncSession, user_id: int) -> List[PermissionRead]:
        """Distinct permissions a user holds through its roles."""
        permissions = await RoleRepository.find_user_permissions(db, user_id)
        return [PermissionRead.model_validate(p) for p in permissions]

    @staticmethod
    @critical_database_operation("list_permissions")
    async def list_permissions(db: AsyncSession, module: Optional[str] = None) -> List[PermissionRead]:
        permissions = await PermissionRepository.find_by_module(db, module)
        return [PermissionRead.model_validate(p) for p in permissions]

    @staticmethod
    @safe_database_query("list_permission_modules", default_return=[])
    async def list_modules(db: AsyncSession) -> List[str]:
        """Permission module names for filter lists; empty on database errors."""
        return await PermissionRepository.find_modules(db)
