"""Repository for Role and role-permission operations."""

from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Permission, Role, RolePermission, UserRole
from repositories.base_repository import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Repository for role operations."""

    model = Role

    @classmethod
    async def find_by_name(cls, db: AsyncSession, role_name: str) -> Optional[Role]:
        stmt = select(Role).where(Role.role_name == role_name)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_visible(cls, db: AsyncSession, reseller_id: Optional[int] = None) -> List[Role]:
        """
        Find roles ordered by name.

        With a reseller, only system roles and that reseller's own roles.
        """
        stmt = select(Role)
        if reseller_id is not None:
            stmt = stmt.where(or_(Role.is_system_role.is_(True), Role.reseller_id == reseller_id))
        result = await db.execute(stmt.order_by(Role.role_name))
        return list(result.scalars().all())

    @classmethod
    async def find_permissions(cls, db: AsyncSession, role_id: int) -> List[Permission]:
        """Permissions granted to a role."""
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.module, Permission.permission_name)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_user_permissions(cls, db: AsyncSession, user_id: int) -> List[Permission]:
        """Distinct permissions granted to a user through any of its roles."""
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(UserRole, UserRole.role_id == RolePermission.role_id)
            .where(UserRole.user_id == user_id)
            .distinct()
            .order_by(Permission.module, Permission.permission_name)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def replace_permissions(
        cls,
        db: AsyncSession,
        role_id: int,
        permission_ids: Sequence[int],
        created_by: Optional[int] = None,
    ) -> None:
        """Replace all permissions of a role."""
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        for permission_id in dict.fromkeys(permission_ids):
            db.add(RolePermission(role_id=role_id, permission_id=permission_id, created_by=created_by))
        await db.flush()

