"""Repository for VerificationLog database operations.

Verification logs are write-once: this repository inserts and reads,
it never updates or deletes.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Technician, VerificationLog
from repositories.base_repository import BaseRepository


class VerificationLogRepository(BaseRepository[VerificationLog]):
    """Repository for verification log operations."""

    model = VerificationLog

    @classmethod
    async def find_last_verification(
        cls, db: AsyncSession, technician_id: int, device_id: int
    ) -> Optional[VerificationLog]:
        """Find the most recent log row for a (technician, device) pair."""
        stmt = (
            select(VerificationLog)
            .where(
                VerificationLog.technician_id == technician_id,
                VerificationLog.device_id == device_id,
            )
            .order_by(VerificationLog.verified_at.desc(), VerificationLog.id.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @classmethod
    async def insert_verification(cls, db: AsyncSession, entry: VerificationLog) -> VerificationLog:
        """Insert a new log row and flush it so its id is populated."""
        db.add(entry)
        await db.flush()
        await db.refresh(entry)
        return entry

    @classmethod
    async def count_for_day(cls, db: AsyncSession, technician_id: int, day: date) -> int:
        """Count a technician's log rows on one UTC calendar day."""
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        stmt = select(func.count(VerificationLog.id)).where(
            VerificationLog.technician_id == technician_id,
            VerificationLog.verified_at >= start,
            VerificationLog.verified_at < end,
        )
        result = await db.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        technician_id: Optional[int] = None,
        device_id: Optional[int] = None,
        reseller_id: Optional[int] = None,
        imei: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[VerificationLog], int]:
        """
        Search verification logs with pagination, newest first.

        Args:
            db: Database session
            technician_id: Filter by technician
            device_id: Filter by device
            reseller_id: Filter by the reseller of the technician
            imei: IMEI substring
            from_date: Inclusive lower bound on verified_at
            to_date: Inclusive upper bound on verified_at
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (list of log rows, total count)
        """
        stmt = select(VerificationLog)
        count_stmt = select(func.count(VerificationLog.id))

        if reseller_id is not None:
            stmt = stmt.join(Technician, Technician.id == VerificationLog.technician_id)
            count_stmt = count_stmt.join(Technician, Technician.id == VerificationLog.technician_id)

        conditions = []
        if technician_id is not None:
            conditions.append(VerificationLog.technician_id == technician_id)
        if device_id is not None:
            conditions.append(VerificationLog.device_id == device_id)
        if reseller_id is not None:
            conditions.append(Technician.reseller_id == reseller_id)
        if imei:
            conditions.append(VerificationLog.imei.ilike(f"%{imei}%"))
        if from_date is not None:
            conditions.append(VerificationLog.verified_at >= from_date)
        if to_date is not None:
            conditions.append(VerificationLog.verified_at <= to_date)

        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)

        return await cls._paginate(
            db,
            stmt,
            count_stmt,
            page=page,
            per_page=per_page,
            order_by=(VerificationLog.verified_at.desc(), VerificationLog.id.desc()),
        )

    @classmethod
    async def find_recent(
        cls,
        db: AsyncSession,
        *,
        technician_id: Optional[int] = None,
        device_id: Optional[int] = None,
        limit: int = 10,
    ) -> List[VerificationLog]:
        """Find the latest log rows of a technician or a device."""
        return await cls.find_all(
            db,
            filters={"technician_id": technician_id, "device_id": device_id},
            order_by=VerificationLog.verified_at.desc(),
            limit=limit,
        )

    @classmethod
    async def find_for_statistics(
        cls,
        db: AsyncSession,
        *,
        technician_id: Optional[int] = None,
        reseller_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> List[Tuple[int, datetime]]:
        """
        Load (device_id, verified_at) pairs for statistics.

        Returns:
            List of (device_id, verified_at) tuples
        """
        stmt = select(VerificationLog.device_id, VerificationLog.verified_at)
        if reseller_id is not None:
            stmt = stmt.join(Technician, Technician.id == VerificationLog.technician_id).where(
                Technician.reseller_id == reseller_id
            )
        if technician_id is not None:
            stmt = stmt.where(VerificationLog.technician_id == technician_id)
        if from_date is not None:
            stmt = stmt.where(VerificationLog.verified_at >= from_date)
        if to_date is not None:
            stmt = stmt.where(VerificationLog.verified_at <= to_date)

        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]
