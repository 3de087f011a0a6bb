"""Service for managing IMEI restriction rules."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from db.enums import AccessType, AuditAction, RestrictionStatus
from db.models import ImeiRestriction, as_naive_utc, utc_now
from repositories.imei_restriction_repository import ImeiRestrictionRepository
from repositories.tag_repository import TagRepository
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from schemas.common import PagedResult
from schemas.imei_restriction import (
    ImeiRestrictionCreate,
    ImeiRestrictionFilter,
    ImeiRestrictionRead,
    ImeiRestrictionUpdate,
)
from services.access_resolver import AccessResolver
from services.audit_service import AuditService

logger = logging.getLogger(__name__)

ENTITY_TYPE = "ImeiRestriction"


class ImeiRestrictionService:
    """Service for IMEI restriction operations."""

    @staticmethod
    async def _technician_name(db: AsyncSession, technician_id: int) -> Optional[str]:
        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            return None
        user = await UserRepository.find_by_id(db, technician.user_id)
        return user.display_name if user else None

    @staticmethod
    async def _tag_names(db: AsyncSession, tag_ids: Iterable[Optional[int]]) -> Dict[int, str]:
        names = {}
        for tag_id in {tag_id for tag_id in tag_ids if tag_id is not None}:
            tag = await TagRepository.find_by_id(db, tag_id)
            if tag is not None:
                names[tag_id] = tag.tag_name
        return names

    @staticmethod
    async def _to_read_models(
        db: AsyncSession, technician_id: int, restrictions: List[ImeiRestriction]
    ) -> List[ImeiRestrictionRead]:
        technician_name = await ImeiRestrictionService._technician_name(db, technician_id)
        tag_names = await ImeiRestrictionService._tag_names(db, (r.tag_id for r in restrictions))
        return [
            ImeiRestrictionRead.model_validate(restriction).model_copy(
                update={
                    "technician_name": technician_name,
                    "tag_name": tag_names.get(restriction.tag_id),
                }
            )
            for restriction in restrictions
        ]

    @staticmethod
    def _validate_rule(
        device_id: Optional[int],
        tag_id: Optional[int],
        access_type: Optional[int],
        valid_from: Optional[datetime],
        valid_until: Optional[datetime],
    ) -> None:
        if (device_id is None) == (tag_id is None):
            raise ValidationError("Exactly one of device ID or tag ID must be set", field="device_id")

        if access_type not in (AccessType.ALLOW, AccessType.DENY):
            raise ValidationError(f"Invalid access type: {access_type}", field="access_type")

        if valid_from is not None and valid_until is not None and valid_from > valid_until:
            raise ValidationError("Valid from must not be after valid until", field="valid_until")

    @staticmethod
    async def _require_tag(db: AsyncSession, tag_id: Optional[int]) -> None:
        if tag_id is not None and await TagRepository.find_by_id(db, tag_id) is None:
            raise NotFoundError("Tag", tag_id)

    @staticmethod
    @critical_database_operation("list_imei_restrictions")
    async def list_by_technician(
        db: AsyncSession, filters: ImeiRestrictionFilter
    ) -> PagedResult[ImeiRestrictionRead]:
        """List a technician's rules, newest first."""
        restrictions, total = await ImeiRestrictionRepository.find_paginated_by_technician(
            db, filters.technician_id, page=filters.page, per_page=filters.page_size
        )
        items = await ImeiRestrictionService._to_read_models(db, filters.technician_id, restrictions)
        return PagedResult[ImeiRestrictionRead](
            items=items, total_count=total, page=filters.page, page_size=filters.page_size
        )

    @staticmethod
    @critical_database_operation("get_imei_restriction")
    async def get_restriction(db: AsyncSession, restriction_id: int) -> Optional[ImeiRestrictionRead]:
        """Get a single rule by ID, or None if not found."""
        restriction = await ImeiRestrictionRepository.find_by_id(db, restriction_id)
        if restriction is None:
            return None
        items = await ImeiRestrictionService._to_read_models(db, restriction.technician_id, [restriction])
        return items[0]

    @staticmethod
    @critical_database_operation("get_active_imei_restrictions")
    async def get_active_restrictions(
        db: AsyncSession, technician_id: int, now: Optional[datetime] = None
    ) -> List[ImeiRestrictionRead]:
        """Get a technician's Active rules whose validity window contains now."""
        now = as_naive_utc(now) if now is not None else utc_now()
        restrictions = await ImeiRestrictionRepository.find_by_technician(
            db, technician_id, status=RestrictionStatus.ACTIVE
        )
        live = [r for r in restrictions if AccessResolver.is_within_validity_window(r, now)]
        return await ImeiRestrictionService._to_read_models(db, technician_id, live)

    @staticmethod
    @critical_database_operation("is_device_restricted")
    async def is_device_restricted(
        db: AsyncSession, technician_id: int, device_id: int, now: Optional[datetime] = None
    ) -> bool:
        """Check for a live device-scoped Deny rule of a technician."""
        now = as_naive_utc(now) if now is not None else utc_now()
        restrictions = await ImeiRestrictionRepository.find_by_technician(
            db, technician_id, status=RestrictionStatus.ACTIVE
        )
        return any(
            r.device_id == device_id
            and r.access_type == AccessType.DENY
            and AccessResolver.is_within_validity_window(r, now)
            for r in restrictions
        )

    @staticmethod
    @transactional_database_operation("create_imei_restriction")
    @log_database_operation("IMEI restriction creation", level="info")
    async def create_restriction(
        db: AsyncSession,
        restriction_data: ImeiRestrictionCreate,
        created_by: Optional[int] = None,
    ) -> ImeiRestrictionRead:
        """
        Create a restriction rule.

        valid_from defaults to now; the rule starts Active.

        Raises:
            NotFoundError: Technician or tag does not exist
            ValidationError: Target, access type or validity window invalid
        """
        technician = await TechnicianRepository.find_by_id(db, restriction_data.technician_id)
        if technician is None:
            raise NotFoundError("Technician", restriction_data.technician_id)

        valid_from = as_naive_utc(restriction_data.valid_from) if restriction_data.valid_from else utc_now()
        valid_until = as_naive_utc(restriction_data.valid_until) if restriction_data.valid_until else None

        ImeiRestrictionService._validate_rule(
            restriction_data.device_id,
            restriction_data.tag_id,
            restriction_data.access_type,
            valid_from,
            valid_until,
        )
        await ImeiRestrictionService._require_tag(db, restriction_data.tag_id)

        now = utc_now()
        restriction = await ImeiRestrictionRepository.create(
            db,
            obj_in={
                "technician_id": restriction_data.technician_id,
                "device_id": restriction_data.device_id,
                "tag_id": restriction_data.tag_id,
                "access_type": int(restriction_data.access_type),
                "priority": restriction_data.priority,
                "reason": restriction_data.reason,
                "is_permanent": restriction_data.is_permanent,
                "valid_from": valid_from,
                "valid_until": valid_until,
                "notes": restriction_data.notes,
                "status": RestrictionStatus.ACTIVE,
                "created_by": created_by,
                "updated_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )

        await AuditService.log(
            db,
            AuditAction.CREATE,
            ENTITY_TYPE,
            restriction.id,
            user_id=created_by,
            new_values=restriction_data,
        )

        items = await ImeiRestrictionService._to_read_models(db, restriction.technician_id, [restriction])
        return items[0]

    @staticmethod
    @transactional_database_operation("update_imei_restriction")
    @log_database_operation("IMEI restriction update", level="info")
    async def update_restriction(
        db: AsyncSession,
        restriction_id: int,
        update_data: ImeiRestrictionUpdate,
        updated_by: Optional[int] = None,
    ) -> ImeiRestrictionRead:
        """
        Partially update a rule.

        Setting a device ID clears the tag ID and vice versa, unless both are
        given, in which case validation rejects the update.

        Raises:
            NotFoundError: Rule or tag does not exist
            ValidationError: Resulting rule breaks an invariant
        """
        restriction = await ImeiRestrictionRepository.find_by_id(db, restriction_id)
        if restriction is None:
            raise NotFoundError("IMEI restriction", restriction_id)

        changes = update_data.model_dump(exclude_unset=True)
        if changes.get("device_id") is not None and "tag_id" not in changes:
            changes["tag_id"] = None
        if changes.get("tag_id") is not None and "device_id" not in changes:
            changes["device_id"] = None
        for field in ("valid_from", "valid_until"):
            if changes.get(field) is not None:
                changes[field] = as_naive_utc(changes[field])

        old_values = {field: getattr(restriction, field) for field in changes}

        ImeiRestrictionService._validate_rule(
            changes.get("device_id", restriction.device_id),
            changes.get("tag_id", restriction.tag_id),
            changes.get("access_type", restriction.access_type),
            changes.get("valid_from", restriction.valid_from),
            changes.get("valid_until", restriction.valid_until),
        )
        if "tag_id" in changes:
            await ImeiRestrictionService._require_tag(db, changes["tag_id"])

        for field in ("access_type", "status"):
            if changes.get(field) is not None:
                changes[field] = int(changes[field])
        changes["updated_by"] = updated_by
        changes["updated_at"] = utc_now()

        restriction = await ImeiRestrictionRepository.update(db, id_value=restriction_id, obj_in=changes)

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            ENTITY_TYPE,
            restriction_id,
            user_id=updated_by,
            old_values=old_values,
            new_values=update_data,
        )

        items = await ImeiRestrictionService._to_read_models(db, restriction.technician_id, [restriction])
        return items[0]

    @staticmethod
    @transactional_database_operation("delete_imei_restriction")
    @log_database_operation("IMEI restriction deletion", level="info")
    async def delete_restriction(
        db: AsyncSession, restriction_id: int, deleted_by: Optional[int] = None
    ) -> bool:
        """
        Delete a rule.

        Returns:
            True if deleted, False if not found
        """
        restriction = await ImeiRestrictionRepository.find_by_id(db, restriction_id)
        if restriction is None:
            return False

        old_values = {
            "restrictionId": restriction.id,
            "technicianId": restriction.technician_id,
            "deviceId": restriction.device_id,
            "tagId": restriction.tag_id,
            "accessType": restriction.access_type,
        }
        await ImeiRestrictionRepository.delete(db, id_value=restriction_id)

        await AuditService.log(
            db,
            AuditAction.DELETE,
            ENTITY_TYPE,
            restriction_id,
            user_id=deleted_by,
            old_values=old_values,
        )
        return True

    @staticmethod
    @transactional_database_operation("expire_lapsed_imei_restrictions")
    @log_database_operation("IMEI restriction expiry", level="info")
    async def expire_lapsed_restrictions(db: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Mark Active, non-permanent rules whose valid_until has passed as Expired.

        Returns:
            Number of rules expired
        """
        now = as_naive_utc(now) if now is not None else utc_now()
        lapsed = await ImeiRestrictionRepository.find_lapsed(db, now)
        for restriction in lapsed:
            restriction.status = RestrictionStatus.EXPIRED
            restriction.updated_at = now

        if lapsed:
            await db.flush()
            logger.info(f"Expired {len(lapsed)} lapsed IMEI restrictions")
        return len(lapsed)
