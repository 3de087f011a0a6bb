"""Repository for User and role lookups."""

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import CallerRole
from db.models import Role, User, UserRole
from repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user operations."""

    model = User

    @classmethod
    async def find_by_username(cls, db: AsyncSession, username: str) -> Optional[User]:
        """Find user by username."""
        stmt = select(User).where(User.username == username)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_by_email(cls, db: AsyncSession, email: str) -> Optional[User]:
        """Find user by email, case-insensitively."""
        stmt = select(User).where(func.lower(User.email) == email.lower()).limit(1)
        result = await db.execute(stmt)
        return result.scalars().first()

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        search_term: Optional[str] = None,
        status: Optional[int] = None,
        reseller_id: Optional[int] = None,
        exclude_super_admin: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[User], int]:
        """
        Search users with pagination, newest first.

        The search term matches username, email or full name.
        """
        conditions = []
        if search_term:
            pattern = f"%{search_term}%"
            conditions.append(
                or_(
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                    User.full_name.ilike(pattern),
                )
            )
        if status is not None:
            conditions.append(User.status == status)
        if reseller_id is not None:
            conditions.append(User.reseller_id == reseller_id)
        if exclude_super_admin:
            super_admins = (
                select(UserRole.user_id)
                .join(Role, Role.id == UserRole.role_id)
                .where(Role.role_name == CallerRole.SUPER_ADMIN.value)
            )
            conditions.append(User.id.not_in(super_admins))

        stmt = select(User).where(*conditions)
        count_stmt = select(func.count(User.id)).where(*conditions)

        return await cls._paginate(
            db, stmt, count_stmt, page=page, per_page=per_page, order_by=User.created_at.desc()
        )

    @classmethod
    async def get_role_names(cls, db: AsyncSession, user_id: int) -> List[str]:
        """Get the names of all roles assigned to a user."""
        stmt = (
            select(Role.role_name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.role_name)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_role_ids(cls, db: AsyncSession, role_names: Sequence[str]) -> List[int]:
        """Resolve role names to ids; unknown names are skipped."""
        if not role_names:
            return []
        stmt = select(Role.id).where(Role.role_name.in_(list(role_names))).order_by(Role.id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def replace_roles(
        cls,
        db: AsyncSession,
        user_id: int,
        role_ids: Sequence[int],
        created_by: Optional[int] = None,
    ) -> None:
        """Replace all role assignments of a user."""
        await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        for role_id in dict.fromkeys(role_ids):
            db.add(UserRole(user_id=user_id, role_id=role_id, created_by=created_by))
        await db.flush()
