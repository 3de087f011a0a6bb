"""
Verification Recorder - time-gap deduplication of verification logs.

Repeated checks of the same device by the same technician within
TIME_GAP_HOURS collapse into the earlier log row. Log rows are
write-once: a reused row is returned exactly as stored.

The read and the conditional insert run on the caller's session and are
committed by the caller's transaction.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation
from core.exceptions import NotFoundError, ValidationError
from core.logging_config import VerificationLogger
from db.models import VerificationLog, as_naive_utc, utc_now
from repositories.technician_repository import TechnicianRepository
from repositories.verification_log_repository import VerificationLogRepository
from schemas.imei import DeviceRef, VerificationPayload

verification_logger = VerificationLogger("recorder")

TIME_GAP_HOURS = 4
TIME_GAP = timedelta(hours=TIME_GAP_HOURS)


@dataclass(frozen=True)
class RecordResult:
    """Result of recording a verification - immutable."""

    verification_id: int
    created: bool
    log: VerificationLog


class VerificationRecorder:
    """Decides between inserting a new log row and reusing the latest one."""

    @staticmethod
    def needs_new_entry(last_verified_at: Optional[datetime], now: datetime) -> bool:
        """
        Check whether a new log row is due.

        A row is due when there is no prior row, or when at least
        TIME_GAP_HOURS have passed since it (the boundary itself counts).
        """
        if last_verified_at is None:
            return True
        return as_naive_utc(now) - as_naive_utc(last_verified_at) >= TIME_GAP

    @staticmethod
    @critical_database_operation("record_verification")
    async def record_verification(
        db: AsyncSession,
        technician_id: int,
        device_ref: DeviceRef,
        payload: Optional[VerificationPayload] = None,
        now: Optional[datetime] = None,
    ) -> RecordResult:
        """
        Record that a technician checked a device.

        Args:
            db: Database session
            technician_id: Technician performing the check
            device_ref: Device resolved by the directory
            payload: Status, notes and GPS snapshot for a new row
            now: Time of the check (defaults to the current UTC time)

        Returns:
            RecordResult with the new or reused row

        Raises:
            ValidationError: Device reference carries no device id
            NotFoundError: Technician does not exist
        """
        if device_ref is None or device_ref.device_id is None:
            raise ValidationError("Device ID is required to record a verification", field="device_id")

        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None:
            raise NotFoundError("Technician", technician_id)

        now = as_naive_utc(now) if now is not None else utc_now()
        device_id = device_ref.device_id

        prior = await VerificationLogRepository.find_last_verification(db, technician_id, device_id)
        if prior is not None and not VerificationRecorder.needs_new_entry(prior.verified_at, now):
            verification_logger.verification_reused(prior.id, technician_id, device_id, prior.verified_at)
            return RecordResult(verification_id=prior.id, created=False, log=prior)

        entry = VerificationLog(
            technician_id=technician_id,
            device_id=device_id,
            imei=device_ref.imei,
            verified_at=now,
        )
        if payload is not None:
            entry.verification_status = payload.verification_status
            entry.notes = payload.notes
            if payload.gps_data is not None:
                entry.latitude = payload.gps_data.latitude
                entry.longitude = payload.gps_data.longitude
                if payload.gps_data.gps_time is not None:
                    entry.gps_time = as_naive_utc(payload.gps_data.gps_time)

        entry = await VerificationLogRepository.insert_verification(db, entry)
        verification_logger.verification_recorded(entry.id, technician_id, device_id, entry.verified_at)
        return RecordResult(verification_id=entry.id, created=True, log=entry)
