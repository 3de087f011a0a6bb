"""Service for querying verification logs and statistics."""

import logging
from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation
from db.models import as_naive_utc, utc_now
from repositories.verification_log_repository import VerificationLogRepository
from schemas.common import PagedResult
from schemas.verification_log import VerificationLogFilter, VerificationLogRead, VerificationStatistics

logger = logging.getLogger(__name__)


class VerificationLogService:
    """Read-only service over the verification log."""

    @staticmethod
    def compute_statistics(rows: Iterable[Tuple[int, datetime]], now: datetime) -> VerificationStatistics:
        """
        Summarize (device_id, verified_at) rows.

        Weeks start on Sunday; all periods are UTC calendar periods
        containing now.
        """
        rows = list(rows)
        today = datetime.combine(as_naive_utc(now).date(), time.min)
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        month_start = today.replace(day=1)

        timestamps = [verified_at for _, verified_at in rows]
        return VerificationStatistics(
            total_verifications=len(rows),
            unique_devices=len({device_id for device_id, _ in rows}),
            verifications_today=sum(1 for ts in timestamps if ts >= today),
            verifications_this_week=sum(1 for ts in timestamps if ts >= week_start),
            verifications_this_month=sum(1 for ts in timestamps if ts >= month_start),
            last_verification_at=max(timestamps) if timestamps else None,
        )

    @staticmethod
    @critical_database_operation("search_verification_logs")
    async def search(db: AsyncSession, filters: VerificationLogFilter) -> PagedResult[VerificationLogRead]:
        """Search logs by technician, device, reseller, IMEI substring and date range."""
        items, total = await VerificationLogRepository.search(
            db,
            technician_id=filters.technician_id,
            device_id=filters.device_id,
            reseller_id=filters.reseller_id,
            imei=filters.imei,
            from_date=as_naive_utc(filters.from_date) if filters.from_date else None,
            to_date=as_naive_utc(filters.to_date) if filters.to_date else None,
            page=filters.page,
            per_page=filters.page_size,
        )
        return PagedResult[VerificationLogRead](
            items=[VerificationLogRead.model_validate(item) for item in items],
            total_count=total,
            page=filters.page,
            page_size=filters.page_size,
        )

    @staticmethod
    @critical_database_operation("get_verification_log")
    async def get_log(db: AsyncSession, verification_id: int) -> Optional[VerificationLogRead]:
        """Get a single log row by ID, or None if not found."""
        entry = await VerificationLogRepository.find_by_id(db, verification_id)
        return VerificationLogRead.model_validate(entry) if entry else None

    @staticmethod
    @critical_database_operation("recent_verifications_by_technician")
    async def get_recent_by_technician(
        db: AsyncSession, technician_id: int, limit: int = 10
    ) -> List[VerificationLogRead]:
        """Latest log rows of a technician, newest first."""
        entries = await VerificationLogRepository.find_recent(db, technician_id=technician_id, limit=limit)
        return [VerificationLogRead.model_validate(entry) for entry in entries]

    @staticmethod
    @critical_database_operation("recent_verifications_by_device")
    async def get_recent_by_device(db: AsyncSession, device_id: int, limit: int = 10) -> List[VerificationLogRead]:
        """Latest log rows of a device, newest first."""
        entries = await VerificationLogRepository.find_recent(db, device_id=device_id, limit=limit)
        return [VerificationLogRead.model_validate(entry) for entry in entries]

    @staticmethod
    @critical_database_operation("verification_statistics")
    async def get_statistics(
        db: AsyncSession,
        technician_id: Optional[int] = None,
        reseller_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> VerificationStatistics:
        """Verification counts for a technician, a reseller, or everyone."""
        rows = await VerificationLogRepository.find_for_statistics(
            db,
            technician_id=technician_id,
            reseller_id=reseller_id,
            from_date=as_naive_utc(from_date) if from_date else None,
            to_date=as_naive_utc(to_date) if to_date else None,
        )
        return VerificationLogService.compute_statistics(rows, now if now is not None else utc_now())
