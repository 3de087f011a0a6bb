"""
Reseller Service - tenant administration.

Resellers are never hard-deleted. A status change cascades to the
reseller's users, technicians and tags in the same transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction, ResellerStatus, TechnicianStatus
from db.models import Reseller, as_naive_utc, utc_now
from repositories.reseller_repository import ResellerRepository
from schemas.common import PagedResult
from schemas.reseller import (
    ResellerCreate,
    ResellerFilter,
    ResellerRead,
    ResellerStatistics,
    ResellerStatusResult,
    ResellerUpdate,
)
from services.audit_service import AuditService

logger = logging.getLogger(__name__)


class ResellerService:
    """Service for reseller operations."""

    @staticmethod
    async def _to_read(db: AsyncSession, reseller: Reseller) -> ResellerRead:
        technician_count = await ResellerRepository.count_technicians(db, reseller.id)
        return ResellerRead.model_validate(reseller).model_copy(update={"technician_count": technician_count})

    @staticmethod
    async def _require_reseller(db: AsyncSession, reseller_id: int) -> Reseller:
        reseller = await ResellerRepository.find_by_id(db, reseller_id)
        if reseller is None:
            raise NotFoundError("Reseller", reseller_id)
        return reseller

    @staticmethod
    @critical_database_operation("list_resellers")
    async def list_resellers(db: AsyncSession, filters: ResellerFilter) -> PagedResult[ResellerRead]:
        """List resellers, newest first."""
        resellers, total = await ResellerRepository.search(
            db,
            search_term=filters.search,
            status=filters.status,
            country=filters.country,
            page=filters.page,
            per_page=filters.page_size,
        )
        items = [await ResellerService._to_read(db, reseller) for reseller in resellers]
        return PagedResult[ResellerRead](
            items=items, total_count=total, page=filters.page, page_size=filters.page_size
        )

    @staticmethod
    @critical_database_operation("get_reseller")
    async def get_reseller(db: AsyncSession, reseller_id: int) -> Optional[ResellerRead]:
        reseller = await ResellerRepository.find_by_id(db, reseller_id)
        if reseller is None:
            return None
        return await ResellerService._to_read(db, reseller)

    @staticmethod
    @transactional_database_operation("create_reseller")
    @log_database_operation("reseller creation", level="info")
    async def create_reseller(
        db: AsyncSession,
        reseller_data: ResellerCreate,
        created_by: Optional[int] = None,
    ) -> ResellerRead:
        """Create a reseller in Active status."""
        now = utc_now()
        reseller = await ResellerRepository.create(
            db,
            obj_in={
                **reseller_data.model_dump(),
                "status": ResellerStatus.ACTIVE,
                "created_by": created_by,
                "updated_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )

        await AuditService.log(
            db, AuditAction.CREATE, "Reseller", reseller.id, user_id=created_by, new_values=reseller_data
        )
        return await ResellerService._to_read(db, reseller)

    @staticmethod
    @transactional_database_operation("update_reseller")
    @log_database_operation("reseller update", level="info")
    async def update_reseller(
        db: AsyncSession,
        reseller_id: int,
        update_data: ResellerUpdate,
        updated_by: Optional[int] = None,
    ) -> ResellerRead:
        """
        Partially update a reseller's profile.

        Raises:
            NotFoundError: Reseller does not exist
            ValidationError: Company name is blank
        """
        reseller = await ResellerService._require_reseller(db, reseller_id)

        changes = update_data.model_dump(exclude_unset=True)
        if "company_name" in changes:
            name = (changes["company_name"] or "").strip()
            if not name:
                raise ValidationError("Company name must not be blank", field="company_name")
            changes["company_name"] = name

        old_values = {field: getattr(reseller, field) for field in changes}
        changes["updated_by"] = updated_by
        changes["updated_at"] = utc_now()

        reseller = await ResellerRepository.update(db, id_value=reseller_id, obj_in=changes)

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "Reseller",
            reseller_id,
            user_id=updated_by,
            old_values=old_values,
            new_values=update_data,
        )
        return await ResellerService._to_read(db, reseller)

    @staticmethod
    @transactional_database_operation("set_reseller_status")
    @log_database_operation("reseller status change", level="info")
    async def set_status(
        db: AsyncSession,
        reseller_id: int,
        status: ResellerStatus,
        updated_by: Optional[int] = None,
    ) -> ResellerStatusResult:
        """
        Activate, deactivate or suspend a reseller and everything it owns.

        Users and technicians of the reseller take the new status; its tags
        are active only while the reseller is.

        Raises:
            NotFoundError: Reseller does not exist
        """
        reseller = await ResellerService._require_reseller(db, reseller_id)

        now = utc_now()
        old_status = reseller.status
        reseller.status = int(status)
        reseller.updated_by = updated_by
        reseller.updated_at = now
        await db.flush()

        users, technicians, tags = await ResellerRepository.cascade_status(
            db, reseller_id, status, updated_by, now
        )

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "Reseller",
            reseller_id,
            user_id=updated_by,
            old_values={"status": old_status},
            new_values={
                "status": int(status),
                "usersUpdated": users,
                "techniciansUpdated": technicians,
                "tagsUpdated": tags,
            },
        )
        logger.info(
            f"Reseller {reseller_id} status {old_status} -> {int(status)}: "
            f"{users} users, {technicians} technicians, {tags} tags"
        )
        return ResellerStatusResult(
            reseller_id=reseller_id,
            company_name=reseller.company_name,
            new_status=int(status),
            users_updated=users,
            technicians_updated=technicians,
            tags_updated=tags,
        )

    @staticmethod
    @critical_database_operation("get_reseller_statistics")
    async def get_statistics(
        db: AsyncSession,
        reseller_id: int,
        now: Optional[datetime] = None,
    ) -> ResellerStatistics:
        """
        Technician and verification counts for a reseller.

        The month is the current UTC calendar month.

        Raises:
            NotFoundError: Reseller does not exist
        """
        await ResellerService._require_reseller(db, reseller_id)

        now = as_naive_utc(now) if now is not None else utc_now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        return ResellerStatistics(
            reseller_id=reseller_id,
            total_technicians=await ResellerRepository.count_technicians(db, reseller_id),
            active_technicians=await ResellerRepository.count_technicians(
                db, reseller_id, status=TechnicianStatus.ACTIVE
            ),
            total_verifications=await ResellerRepository.count_verifications(db, reseller_id),
            verifications_this_month=await ResellerRepository.count_verifications(
                db, reseller_id, since=month_start
            ),
        )
