"""Service for the technician lifecycle. Technicians are never hard-deleted."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction, RestrictionStatus, TechnicianStatus
from db.models import Technician, utc_now
from repositories.imei_restriction_repository import ImeiRestrictionRepository
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from schemas.common import PagedResult
from schemas.technician import TechnicianCreate, TechnicianFilter, TechnicianRead, TechnicianUpdate
from services.audit_service import AuditService

logger = logging.getLogger(__name__)


class TechnicianService:
    """Service for technician operations."""

    @staticmethod
    async def _to_read(db: AsyncSession, technician: Technician) -> TechnicianRead:
        user = await UserRepository.find_by_id(db, technician.user_id)
        restriction_count = await ImeiRestrictionRepository.count(
            db, filters={"technician_id": technician.id, "status": RestrictionStatus.ACTIVE}
        )
        return TechnicianRead.model_validate(technician).model_copy(
            update={
                "username": user.username if user else None,
                "email": user.email if user else None,
                "full_name": user.full_name if user else None,
                "active_restriction_count": restriction_count,
            }
        )

    @staticmethod
    @critical_database_operation("list_technicians")
    async def list_technicians(db: AsyncSession, filters: TechnicianFilter) -> PagedResult[TechnicianRead]:
        """List technicians, newest first."""
        technicians, total = await TechnicianRepository.search(
            db,
            search_term=filters.search,
            reseller_id=filters.reseller_id,
            status=filters.status,
            work_region=filters.work_region,
            page=filters.page,
            per_page=filters.page_size,
        )
        items = [await TechnicianService._to_read(db, technician) for technician in technicians]
        return PagedResult[TechnicianRead](
            items=items, total_count=total, page=filters.page, page_size=filters.page_size
        )

    @staticmethod
    @critical_database_operation("get_technician")
    async def get_technician(db: AsyncSession, technician_id: int) -> Optional[TechnicianRead]:
        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            return None
        return await TechnicianService._to_read(db, technician)

    @staticmethod
    @transactional_database_operation("create_technician")
    @log_database_operation("technician creation", level="info")
    async def create_technician(
        db: AsyncSession,
        technician_data: TechnicianCreate,
        created_by: Optional[int] = None,
    ) -> TechnicianRead:
        """
        Create a technician profile for an existing user.

        The reseller defaults to the user's reseller.

        Raises:
            NotFoundError: User does not exist
            ValidationError: User already has a technician record
        """
        user = await UserRepository.find_by_id(db, technician_data.user_id)
        if user is None:
            raise NotFoundError("User", technician_data.user_id)

        if await TechnicianRepository.find_by_user_id(db, user.id) is not None:
            raise ValidationError(f"User {user.id} already has a technician record", field="user_id")

        now = utc_now()
        technician = await TechnicianRepository.create(
            db,
            obj_in={
                "user_id": user.id,
                "reseller_id": technician_data.reseller_id or user.reseller_id,
                "employee_code": technician_data.employee_code,
                "skillset": technician_data.skillset,
                "certification": technician_data.certification,
                "work_region": technician_data.work_region,
                "daily_limit": technician_data.daily_limit,
                "status": TechnicianStatus.ACTIVE,
                "created_by": created_by,
                "updated_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )

        await AuditService.log(
            db, AuditAction.CREATE, "Technician", technician.id, user_id=created_by, new_values=technician_data
        )
        return await TechnicianService._to_read(db, technician)

    @staticmethod
    @transactional_database_operation("update_technician")
    @log_database_operation("technician update", level="info")
    async def update_technician(
        db: AsyncSession,
        technician_id: int,
        update_data: TechnicianUpdate,
        updated_by: Optional[int] = None,
    ) -> TechnicianRead:
        """
        Partially update a technician.

        Raises:
            NotFoundError: Technician does not exist
        """
        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            raise NotFoundError("Technician", technician_id)

        changes = update_data.model_dump(exclude_unset=True)
        old_values = {field: getattr(technician, field) for field in changes}
        if changes.get("status") is not None:
            changes["status"] = int(changes["status"])
        changes["updated_by"] = updated_by
        changes["updated_at"] = utc_now()

        technician = await TechnicianRepository.update(db, id_value=technician_id, obj_in=changes)

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "Technician",
            technician_id,
            user_id=updated_by,
            old_values=old_values,
            new_values=update_data,
        )
        return await TechnicianService._to_read(db, technician)

    @staticmethod
    @transactional_database_operation("set_technician_status")
    @log_database_operation("technician status change", level="info")
    async def set_status(
        db: AsyncSession,
        technician_id: int,
        status: TechnicianStatus,
        updated_by: Optional[int] = None,
    ) -> TechnicianRead:
        """
        Enable, disable or suspend a technician.

        Raises:
            NotFoundError: Technician does not exist
        """
        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            raise NotFoundError("Technician", technician_id)

        old_status = technician.status
        technician.status = int(status)
        technician.updated_by = updated_by
        technician.updated_at = utc_now()
        await db.flush()

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "Technician",
            technician_id,
            user_id=updated_by,
            old_values={"status": old_status},
            new_values={"status": int(status)},
        )
        return await TechnicianService._to_read(db, technician)
