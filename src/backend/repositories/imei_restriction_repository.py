"""Repository for ImeiRestriction database operations."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import RestrictionStatus
from db.models import ImeiRestriction
from repositories.base_repository import BaseRepository


class ImeiRestrictionRepository(BaseRepository[ImeiRestriction]):
    """Repository for IMEI restriction operations."""

    model = ImeiRestriction

    @classmethod
    async def find_by_technician(
        cls,
        db: AsyncSession,
        technician_id: int,
        *,
        status: Optional[int] = None,
    ) -> List[ImeiRestriction]:
        """
        Find restriction rules of a technician.

        Args:
            db: Database session
            technician_id: Technician whose rules are loaded
            status: Only rules with this status (all rules when None)

        Returns:
            Rules ordered by priority (highest first), newest first within a priority
        """
        stmt = select(ImeiRestriction).where(ImeiRestriction.technician_id == technician_id)
        if status is not None:
            stmt = stmt.where(ImeiRestriction.status == status)

        stmt = stmt.order_by(ImeiRestriction.priority.desc(), ImeiRestriction.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_paginated_by_technician(
        cls,
        db: AsyncSession,
        technician_id: int,
        *,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[ImeiRestriction], int]:
        """Find a technician's rules with pagination, newest first."""
        condition = ImeiRestriction.technician_id == technician_id
        stmt = select(ImeiRestriction).where(condition)
        count_stmt = select(func.count(ImeiRestriction.id)).where(condition)

        return await cls._paginate(
            db, stmt, count_stmt, page=page, per_page=per_page, order_by=ImeiRestriction.created_at.desc()
        )

    @classmethod
    async def find_lapsed(cls, db: AsyncSession, now: datetime) -> List[ImeiRestriction]:
        """Find active, non-permanent rules whose validity window ended before now."""
        stmt = select(ImeiRestriction).where(
            ImeiRestriction.status == RestrictionStatus.ACTIVE,
            ImeiRestriction.is_permanent.is_(False),
            ImeiRestriction.valid_until.is_not(None),
            ImeiRestriction.valid_until < now,
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
