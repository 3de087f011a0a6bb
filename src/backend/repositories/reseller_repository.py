"""Repository for Reseller database operations."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import ResellerStatus, TagStatus, TechnicianStatus
from db.models import Reseller, Tag, Technician, User, VerificationLog
from repositories.base_repository import BaseRepository


class ResellerRepository(BaseRepository[Reseller]):
    """Repository for reseller operations."""

    model = Reseller

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        search_term: Optional[str] = None,
        status: Optional[int] = None,
        country: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[Reseller], int]:
        """
        Search resellers with pagination, newest first.

        The search term matches company name, email or contact person.
        """
        conditions = []
        if search_term:
            pattern = f"%{search_term}%"
            conditions.append(
                or_(
                    Reseller.company_name.ilike(pattern),
                    Reseller.email.ilike(pattern),
                    Reseller.contact_person.ilike(pattern),
                )
            )
        if status is not None:
            conditions.append(Reseller.status == status)
        if country:
            conditions.append(Reseller.country == country)

        stmt = select(Reseller).where(*conditions)
        count_stmt = select(func.count(Reseller.id)).where(*conditions)

        return await cls._paginate(
            db, stmt, count_stmt, page=page, per_page=per_page, order_by=Reseller.created_at.desc()
        )

    @classmethod
    async def count_technicians(
        cls, db: AsyncSession, reseller_id: int, status: Optional[int] = None
    ) -> int:
        """Count a reseller's technicians, optionally with one status."""
        stmt = select(func.count(Technician.id)).where(Technician.reseller_id == reseller_id)
        if status is not None:
            stmt = stmt.where(Technician.status == status)
        result = await db.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def count_verifications(
        cls, db: AsyncSession, reseller_id: int, since: Optional[datetime] = None
    ) -> int:
        """Count verification log rows written by a reseller's technicians."""
        stmt = (
            select(func.count(VerificationLog.id))
            .join(Technician, Technician.id == VerificationLog.technician_id)
            .where(Technician.reseller_id == reseller_id)
        )
        if since is not None:
            stmt = stmt.where(VerificationLog.verified_at >= since)
        result = await db.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def cascade_status(
        cls,
        db: AsyncSession,
        reseller_id: int,
        status: ResellerStatus,
        updated_by: Optional[int],
        now: datetime,
    ) -> Tuple[int, int, int]:
        """
        Apply a reseller status to its users, technicians and tags.

        Users and technicians take the same status value. Tags have no
        suspended state, so they are active only while the reseller is.

        Returns:
            Tuple of (users updated, technicians updated, tags updated)
        """
        users = await db.execute(
            update(User)
            .where(User.reseller_id == reseller_id)
            .values(status=int(status), updated_by=updated_by, updated_at=now)
        )
        technicians = await db.execute(
            update(Technician)
            .where(Technician.reseller_id == reseller_id)
            .values(status=int(TechnicianStatus(int(status))), updated_by=updated_by, updated_at=now)
        )
        tag_status = TagStatus.ACTIVE if status == ResellerStatus.ACTIVE else TagStatus.INACTIVE
        tags = await db.execute(
            update(Tag)
            .where(Tag.reseller_id == reseller_id)
            .values(status=int(tag_status), updated_by=updated_by, updated_at=now)
        )
        return users.rowcount, technicians.rowcount, tags.rowcount
