"""
IMEI Service - access checks, live device data and verification for a caller.

Orchestrates the device directory, the access resolver, the verification
recorder and the audit trail. Denials and the daily limit are returned
as unsuccessful results; unknown devices and technicians raise
NotFoundError.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from core.logging_config import VerificationLogger
from db.enums import AuditAction, CallerRole
from db.models import as_naive_utc, utc_now
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from repositories.verification_log_repository import VerificationLogRepository
from schemas.common import PagedResult
from schemas.imei import (
    AccessResult,
    Caller,
    DeviceDataResult,
    DeviceRef,
    VerificationHistoryFilter,
    VerificationHistoryItem,
    VerificationRequest,
    VerificationResult,
)
from services.access_resolver import AccessResolver
from services.audit_service import AuditService
from services.device_directory import DeviceDirectoryClient
from services.verification_recorder import TIME_GAP_HOURS, VerificationRecorder

logger = logging.getLogger(__name__)
verification_logger = VerificationLogger("imei")

DAILY_LIMIT_MESSAGE = "Daily verification limit reached"
DEVICE_DATA_UNAVAILABLE_MESSAGE = "Unable to fetch device data"


class ImeiService:
    """Service for the IMEI lookup and verification workflow."""

    @staticmethod
    @critical_database_operation("resolve_caller")
    async def resolve_caller(db: AsyncSession, user_id: int) -> Caller:
        """
        Build the caller context for an authenticated user.

        Stored role names are mapped to a CallerRole here, once.

        Raises:
            NotFoundError: User does not exist
        """
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        role_names = await UserRepository.get_role_names(db, user_id)
        technician = await TechnicianRepository.find_by_user_id(db, user_id)

        return Caller(
            user_id=user.id,
            username=user.username,
            role=CallerRole.from_role_names(role_names),
            reseller_id=user.reseller_id,
            technician_id=technician.id if technician else None,
        )

    @staticmethod
    async def _resolve_device(imei: str) -> DeviceRef:
        device = await DeviceDirectoryClient.resolve_device(imei)
        if device is None or device.device_id is None:
            raise NotFoundError("Device", imei, message=f"Device with IMEI {imei} not found")
        return device

    @staticmethod
    async def _evaluate(
        db: AsyncSession,
        caller: Caller,
        device: DeviceRef,
        now: Optional[datetime],
    ) -> AccessResult:
        """Pick the technician or admin path and audit a denial."""
        if caller.role is CallerRole.TECHNICIAN:
            if caller.technician_id is None:
                raise NotFoundError(
                    "Technician", message=f"No technician record for user {caller.user_id}"
                )
            result = await AccessResolver.check_access(db, caller.technician_id, device, now)
        else:
            result = await AccessResolver.check_admin_access(db, caller, device, now)

        if not result.has_access:
            verification_logger.access_denied(
                device_id=device.device_id,
                imei=device.imei,
                technician_id=caller.technician_id,
                user_id=caller.user_id,
                reason=result.restriction_reason or "",
            )
            await AuditService.log(
                db,
                AuditAction.IMEI_ACCESS_DENIED,
                "Device",
                device.imei or device.device_id,
                user_id=caller.user_id,
                new_values={"deviceId": device.device_id, "reason": result.restriction_reason},
            )
        return result

    @staticmethod
    @transactional_database_operation("imei_check_access")
    async def check_access(
        db: AsyncSession,
        caller: Caller,
        imei: str,
        now: Optional[datetime] = None,
    ) -> AccessResult:
        """
        Check whether a caller may access the device behind an IMEI.

        Raises:
            NotFoundError: Device unknown, or technician missing/inactive
            ValidationError: Malformed IMEI, or admin without reseller scope
        """
        device = await ImeiService._resolve_device(imei)
        return await ImeiService._evaluate(db, caller, device, now)

    @staticmethod
    @transactional_database_operation("imei_get_device_data")
    @log_database_operation("device data lookup", level="info")
    async def get_device_data(
        db: AsyncSession,
        caller: Caller,
        imei: str,
        now: Optional[datetime] = None,
    ) -> DeviceDataResult:
        """Check access, then fetch live data for the device from the directory."""
        device = await ImeiService._resolve_device(imei)
        access = await ImeiService._evaluate(db, caller, device, now)
        if not access.has_access:
            return DeviceDataResult(success=False, message=access.restriction_reason)

        data = await DeviceDirectoryClient.get_device_data(device.imei or imei)
        if data is None:
            return DeviceDataResult(success=False, message=DEVICE_DATA_UNAVAILABLE_MESSAGE)

        await AuditService.log(
            db,
            AuditAction.IMEI_ACCESS,
            "Device",
            device.imei or device.device_id,
            user_id=caller.user_id,
        )
        return DeviceDataResult(success=True, data=data)

    @staticmethod
    @transactional_database_operation("imei_verify_device")
    @log_database_operation("device verification", level="info")
    async def verify_device(
        db: AsyncSession,
        caller: Caller,
        request: VerificationRequest,
        now: Optional[datetime] = None,
    ) -> VerificationResult:
        """
        Verify a device: access check, daily limit, then time-gap recording.

        The daily limit only blocks checks that would create a new log row;
        a check collapsed into a recent row is still reported as success.

        Raises:
            ValidationError: Admin caller without a technician record
            NotFoundError: Device unknown, or technician missing/inactive
        """
        if caller.role is not CallerRole.TECHNICIAN and caller.technician_id is None:
            raise ValidationError(
                "Verification requires a technician record for the calling user",
                field="technician_id",
            )

        now = as_naive_utc(now) if now is not None else utc_now()
        device = await ImeiService._resolve_device(request.imei)
        access = await ImeiService._evaluate(db, caller, device, now)
        if not access.has_access:
            return VerificationResult(success=False, message=access.restriction_reason)

        technician_id = caller.technician_id
        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            raise NotFoundError("Technician", technician_id)

        if technician.daily_limit > 0:
            prior = await VerificationLogRepository.find_last_verification(db, technician_id, device.device_id)
            if VerificationRecorder.needs_new_entry(prior.verified_at if prior else None, now):
                count_today = await VerificationLogRepository.count_for_day(db, technician_id, now.date())
                if count_today >= technician.daily_limit:
                    verification_logger.daily_limit_reached(technician_id, technician.daily_limit, count_today)
                    return VerificationResult(success=False, message=DAILY_LIMIT_MESSAGE)

        result = await VerificationRecorder.record_verification(db, technician_id, device, payload=request, now=now)

        if result.created:
            await AuditService.log(
                db,
                AuditAction.IMEI_VERIFICATION,
                "VerificationLog",
                result.verification_id,
                user_id=caller.user_id,
                new_values={"deviceId": device.device_id, "imei": device.imei},
            )
            message = "Verification recorded"
        else:
            message = f"Device already verified within the last {TIME_GAP_HOURS} hours"

        return VerificationResult(
            success=True,
            verification_id=result.verification_id,
            created=result.created,
            message=message,
        )

    @staticmethod
    @critical_database_operation("imei_verification_history")
    async def get_verification_history(
        db: AsyncSession,
        technician_id: int,
        filters: VerificationHistoryFilter,
        now: Optional[datetime] = None,
    ) -> PagedResult[VerificationHistoryItem]:
        """
        Get a technician's verification history, newest first.

        Missing dates default to the current UTC day.
        """
        today = (as_naive_utc(now) if now is not None else utc_now()).date()
        from_date = as_naive_utc(filters.from_date) if filters.from_date else datetime.combine(today, time.min)
        to_date = (
            as_naive_utc(filters.to_date)
            if filters.to_date
            else datetime.combine(today, time.min) + timedelta(days=1) - timedelta(microseconds=1)
        )

        items, total = await VerificationLogRepository.search(
            db,
            technician_id=technician_id,
            from_date=from_date,
            to_date=to_date,
            page=filters.page,
            per_page=filters.page_size,
        )
        return PagedResult[VerificationHistoryItem](
            items=[VerificationHistoryItem.model_validate(item) for item in items],
            total_count=total,
            page=filters.page,
            page_size=filters.page_size,
        )
