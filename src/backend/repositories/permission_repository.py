"""Repository for Permission lookups. Permissions are seeded, not edited."""

from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Permission
from repositories.base_repository import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    """Repository for permission operations."""

    model = Permission

    @classmethod
    async def find_by_module(cls, db: AsyncSession, module: Optional[str] = None) -> List[Permission]:
        stmt = select(Permission)
        if module:
            stmt = stmt.where(Permission.module == module)
        result = await db.execute(stmt.order_by(Permission.module, Permission.permission_name))
        return list(result.scalars().all())

    @classmethod
    async def find_existing_ids(cls, db: AsyncSession, permission_ids: Sequence[int]) -> List[int]:
        """Subset of the given ids that exist."""
        if not permission_ids:
            return []
        stmt = select(Permission.id).where(Permission.id.in_(list(permission_ids)))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_modules(cls, db: AsyncSession) -> List[str]:
        stmt = (
            select(Permission.module)
            .where(Permission.module.is_not(None))
            .distinct()
            .order_by(Permission.module)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
