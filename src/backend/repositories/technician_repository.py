"""Repository for Technician database operations."""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import TechnicianStatus
from db.models import Technician, User
from repositories.base_repository import BaseRepository


class TechnicianRepository(BaseRepository[Technician]):
    """Repository for technician operations."""

    model = Technician

    @classmethod
    async def find_by_user_id(cls, db: AsyncSession, user_id: int) -> Optional[Technician]:
        """Find the technician record linked to a user account."""
        stmt = select(Technician).where(Technician.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_active_by_reseller(cls, db: AsyncSession, reseller_id: int) -> List[Technician]:
        """Find all active technicians of a reseller, oldest first."""
        stmt = (
            select(Technician)
            .where(
                Technician.reseller_id == reseller_id,
                Technician.status == TechnicianStatus.ACTIVE,
            )
            .order_by(Technician.id.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        search_term: Optional[str] = None,
        reseller_id: Optional[int] = None,
        status: Optional[int] = None,
        work_region: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[Technician], int]:
        """
        Search technicians with pagination.

        The search term matches employee code, username, email or full name
        of the linked user.
        """
        stmt = select(Technician).join(User, User.id == Technician.user_id)
        count_stmt = select(func.count(Technician.id)).join(User, User.id == Technician.user_id)

        conditions = []
        if search_term:
            pattern = f"%{search_term}%"
            conditions.append(
                or_(
                    Technician.employee_code.ilike(pattern),
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                    User.full_name.ilike(pattern),
                )
            )
        if reseller_id is not None:
            conditions.append(Technician.reseller_id == reseller_id)
        if status is not None:
            conditions.append(Technician.status == status)
        if work_region:
            conditions.append(Technician.work_region.ilike(f"%{work_region}%"))

        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)

        return await cls._paginate(
            db, stmt, count_stmt, page=page, per_page=per_page, order_by=Technician.created_at.desc()
        )
